"""Core - node lifecycle and configuration composition.

Architecture:
    options         Listener / Storage / DevConfig option variants
    config          NodeConfig: composition and derivation (args, HCL, address)
    exec_env        ExecEnvironment: a resolved, runnable process
    process         Spawning and signalling server processes
    persistence     node.json snapshot and config.hcl
    node            Node aggregate: build, load, start, resume, kill, clean

Example:
    >>> from devbao.core import FileStorage, TCPListener, build_node
    >>> node = build_node("n1", "bao", TCPListener(), FileStorage(), base_dir="/tmp/nodes")
    >>> node.start()
    >>> node.get_connect_addr()
    'http://127.0.0.1:8200'
"""

from devbao.core.config import NodeConfig
from devbao.core.errors import (
    DevbaoError,
    NodeClientError,
    NodeConfigError,
    NodeLaunchError,
    NodeNotRunningError,
    NodePersistenceError,
    UnknownOptionError,
)
from devbao.core.exec_env import ExecEnvironment
from devbao.core.node import Node, build_node, list_nodes, load_node
from devbao.core.options import (
    ConfigOption,
    DevConfig,
    FileStorage,
    InmemStorage,
    Listener,
    RaftStorage,
    Storage,
    TCPListener,
)
from devbao.core.paths import default_base_directory
from devbao.core.types import ProductType

__all__ = [
    # Node
    "Node",
    "build_node",
    "load_node",
    "list_nodes",
    "NodeConfig",
    "ExecEnvironment",
    "ProductType",
    "default_base_directory",
    # Options
    "ConfigOption",
    "Listener",
    "TCPListener",
    "Storage",
    "FileStorage",
    "RaftStorage",
    "InmemStorage",
    "DevConfig",
    # Errors
    "DevbaoError",
    "NodeConfigError",
    "UnknownOptionError",
    "NodePersistenceError",
    "NodeLaunchError",
    "NodeNotRunningError",
    "NodeClientError",
]
