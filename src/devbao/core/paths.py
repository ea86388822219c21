"""Base directory resolution.

Core entry points always take an explicit base directory. The default
below is only consulted at the outermost boundary (the CLI).
"""

from __future__ import annotations

import os
from pathlib import Path

NODE_JSON_NAME = "node.json"
INSTANCE_CONFIG_NAME = "config.hcl"
SERVER_LOG_NAME = "server.log"

BASE_DIR_ENV = "DEVBAO_HOME"


def default_base_directory() -> Path:
    """Get the default directory holding one subdirectory per node.

    Returns:
        ``$DEVBAO_HOME`` when set, otherwise ``~/.local/share/devbao/nodes``.
    """
    override = os.environ.get(BASE_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".local" / "share" / "devbao" / "nodes"


def node_directory(base_dir: Path | str, name: str) -> Path:
    """Private working/data directory of the node called ``name``."""
    return Path(base_dir).expanduser().absolute() / name
