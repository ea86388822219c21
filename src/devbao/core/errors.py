"""Exceptions raised by devbao.core.

Configuration errors are detected before any side effect happens.
I/O and launch errors carry the path or stage that failed and chain the
underlying exception with ``raise ... from``.
"""

from __future__ import annotations

from typing import Any


class DevbaoError(Exception):
    """Base class for all devbao errors."""

    pass


class NodeConfigError(DevbaoError, ValueError):
    """Node definition is invalid (type, name, listeners, storage)."""

    pass


class UnknownOptionError(NodeConfigError):
    """A configuration option is not a Listener, Storage or DevConfig.

    Attributes:
        index: Position of the option in the option sequence.
        value: The offending option.
    """

    def __init__(self, index: int, value: Any) -> None:
        super().__init__(
            f"unknown type of node configuration option at index {index}: "
            f"{value!r} ({type(value).__name__})"
        )
        self.index = index
        self.value = value


class NodePersistenceError(DevbaoError):
    """Reading or writing node state on disk failed.

    Attributes:
        path: File or directory involved.
        operation: What was being done ("read", "write", "create", ...).
    """

    def __init__(self, message: str, path: str, operation: str) -> None:
        super().__init__(message)
        self.path = path
        self.operation = operation


class NodeLaunchError(DevbaoError):
    """The server process could not be spawned."""

    pass


class NodeNotRunningError(DevbaoError):
    """No live process is recorded for the node."""

    pass


class NodeClientError(DevbaoError):
    """The server's administrative API returned an error.

    Attributes:
        status_code: HTTP status returned by the server.
        errors: Error strings from the response body, if any.
    """

    def __init__(self, message: str, status_code: int, errors: list[str] | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.errors = errors or []
