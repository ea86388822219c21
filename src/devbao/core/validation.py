"""Name validation for nodes.

Node names double as directory names under the base directory, so they
must name exactly one directory entry: no separators, no ``.``/``..``.
"""

from __future__ import annotations

# Longest file name most filesystems accept.
MAX_NAME_LENGTH = 255

_FORBIDDEN_CHARS = ("/", "\\", "\0")
_RESERVED_NAMES = (".", "..")


def validate_name(name: str, entity: str = "node") -> None:
    """Validate a node name.

    Rules:
    - 1-255 characters
    - No path separators or NUL bytes
    - Not ``.`` or ``..``

    Args:
        name: The name to validate.
        entity: What the name is for (used in error messages).

    Raises:
        ValueError: If the name is invalid.

    Example:
        >>> validate_name("dev")          # OK
        >>> validate_name("My_Node")      # OK
        >>> validate_name("../etc")       # ValueError
    """
    entity_cap = entity.capitalize()

    if not name:
        raise ValueError(f"{entity_cap} name is required")

    if len(name) > MAX_NAME_LENGTH:
        raise ValueError(f"{entity_cap} name must be {MAX_NAME_LENGTH} characters or less")

    if name in _RESERVED_NAMES or any(c in name for c in _FORBIDDEN_CHARS):
        raise ValueError(
            f"{entity_cap} name is used as a directory name and cannot contain "
            f"path separators or be `.` or `..`"
        )


def is_valid_name(name: str) -> bool:
    """Check if a name is valid without raising."""
    try:
        validate_name(name)
    except ValueError:
        return False
    return True
