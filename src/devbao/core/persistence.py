"""On-disk node state.

Each node directory holds two independent artifacts:

    node.json   Snapshot of the whole Node (name, type, config, exec)
    config.hcl  Instance configuration handed to the server (non-dev only)

Both are truncated and rewritten in place; the latest write wins.

Decoding the snapshot is two-phase. The pydantic models below check the
overall shape but keep listener and storage entries as plain dicts,
because the concrete class is only known from each entry's ``type`` tag.
``NodeConfig.from_dict`` then classifies those entries.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from devbao.core.errors import NodePersistenceError
from devbao.core.options import DEFAULT_ADDRESS
from devbao.core.paths import INSTANCE_CONFIG_NAME, NODE_JSON_NAME

logger = logging.getLogger(__name__)


class ExecSnapshot(BaseModel):
    """Persisted ExecEnvironment."""

    model_config = ConfigDict(extra="forbid")

    args: list[str] = Field(default_factory=list)
    directory: str
    connect_address: str
    pid: int = 0


class DevSnapshot(BaseModel):
    """Persisted DevConfig."""

    model_config = ConfigDict(extra="forbid")

    token: str = ""
    address: str = DEFAULT_ADDRESS


class ConfigSnapshot(BaseModel):
    """Persisted NodeConfig; listeners and storage stay untyped here."""

    model_config = ConfigDict(extra="forbid")

    listeners: list[dict[str, Any]] = Field(default_factory=list)
    storage: dict[str, Any] | None = None
    dev: DevSnapshot | None = None


class NodeSnapshot(BaseModel):
    """Top-level shape of ``node.json``."""

    model_config = ConfigDict(extra="forbid")

    name: str
    type: str = ""
    exec: ExecSnapshot | None = None
    config: ConfigSnapshot = Field(default_factory=ConfigSnapshot)


def _write_text(path: Path, content: str, what: str) -> None:
    try:
        with open(path, "w") as f:
            f.write(content)
    except OSError as e:
        raise NodePersistenceError(
            f"failed to write {what} (`{path}`): {e}", str(path), "write"
        ) from e


def save_snapshot(directory: Path, data: dict[str, Any]) -> Path:
    """Write ``node.json`` into ``directory``.

    Args:
        directory: The node directory (must exist).
        data: JSON-compatible snapshot, as produced by ``Node.to_dict``.

    Returns:
        Path of the written file.
    """
    path = Path(directory) / NODE_JSON_NAME
    _write_text(path, json.dumps(data, indent=2) + "\n", "node snapshot")
    logger.debug("Saved node snapshot to %s", path)
    return path


def read_snapshot(directory: Path) -> NodeSnapshot:
    """Read and structurally validate ``node.json`` from ``directory``.

    Raises:
        NodePersistenceError: If the file cannot be read or decoded.
    """
    path = Path(directory) / NODE_JSON_NAME

    try:
        with open(path) as f:
            raw = json.load(f)
    except OSError as e:
        raise NodePersistenceError(
            f"failed to open node snapshot (`{path}`) for reading: {e}", str(path), "read"
        ) from e
    except json.JSONDecodeError as e:
        raise NodePersistenceError(
            f"failed to decode node snapshot (`{path}`): {e}", str(path), "decode"
        ) from e

    try:
        return NodeSnapshot.model_validate(raw)
    except ValidationError as e:
        raise NodePersistenceError(
            f"malformed node snapshot (`{path}`): {e}", str(path), "decode"
        ) from e


def save_instance_config(directory: Path, body: str) -> Path:
    """Write the server's ``config.hcl`` into ``directory``.

    Returns:
        Path of the written file, as passed to ``-config=``.
    """
    path = Path(directory) / INSTANCE_CONFIG_NAME
    _write_text(path, body, "instance config")
    logger.debug("Saved instance config to %s", path)
    return path
