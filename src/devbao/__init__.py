"""devbao - local OpenBao / Vault servers for development and testing.

devbao supervises locally-run secret-management servers: it composes
their configuration, starts, stops and restarts them, and remembers
enough on disk to reattach to a running server from a later command.

Layers:
    core/       Nodes, configuration options, persistence, processes
    client/     Administrative HTTP API client (init, unseal, seal)
    frontends/  Command-line interface

Quick Start:
    >>> from devbao import DevConfig, build_node, default_base_directory
    >>> node = build_node("", "bao", DevConfig(), base_dir=default_base_directory())
    >>> node.start()
    >>> node.get_env()
"""

from devbao.__version__ import __version__
from devbao.core import (
    DevConfig,
    DevbaoError,
    ExecEnvironment,
    FileStorage,
    InmemStorage,
    Node,
    NodeConfig,
    NodeConfigError,
    RaftStorage,
    TCPListener,
    build_node,
    default_base_directory,
    list_nodes,
    load_node,
)

__all__ = [
    "__version__",
    "Node",
    "NodeConfig",
    "ExecEnvironment",
    "build_node",
    "load_node",
    "list_nodes",
    "default_base_directory",
    "TCPListener",
    "FileStorage",
    "RaftStorage",
    "InmemStorage",
    "DevConfig",
    "DevbaoError",
    "NodeConfigError",
]
