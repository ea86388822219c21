"""Node - one managed server instance and its lifecycle.

A Node is built in memory from options (``build_node``) or loaded from
its snapshot on disk (``load_node``). Its lifecycle:

    Unstarted --start/resume--> Running --kill--> Stopped --clean--> Cleaned

``start`` is destructive (kill, wipe the directory, resume); ``resume``
reuses the existing directory and storage data. The in-memory Node is
disposable: the snapshot in ``node.json`` is what lets a later command
find the running process again.

Example:
    >>> from devbao.core import DevConfig, build_node
    >>> node = build_node("", "bao", DevConfig(), base_dir=tmp)
    >>> node.start()
    >>> node.get_env()
    {'BAO_ADDR': 'http://127.0.0.1:8200', 'BAO_TOKEN': 'devroot'}
    >>> load_node(node.name, base_dir=tmp).kill()
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from devbao.core import persistence, process
from devbao.core.config import NodeConfig
from devbao.core.errors import (
    DevbaoError,
    NodeConfigError,
    NodeNotRunningError,
    NodePersistenceError,
    UnknownOptionError,
)
from devbao.core.exec_env import ExecEnvironment
from devbao.core.options import DEFAULT_DEV_TOKEN, ConfigOption, DevConfig, Listener, Storage
from devbao.core.paths import node_directory
from devbao.core.types import NODE_TYPES, ProductType
from devbao.core.validation import validate_name

if TYPE_CHECKING:
    from devbao.client import NodeClient

logger = logging.getLogger(__name__)


@dataclass
class Node:
    """A locally-run OpenBao or Vault server.

    Attributes:
        name: Directory key under ``base_dir``; defaulted by ``validate``.
        type: "" (whichever binary is installed), "bao" or "vault".
        config: Composed listeners, storage and dev mode.
        exec: Launch description; set once started or loaded from a
            snapshot that recorded one.
        base_dir: Directory holding one subdirectory per node. Not persisted.
    """

    name: str = ""
    type: str = ""
    config: NodeConfig = field(default_factory=NodeConfig)
    exec: ExecEnvironment | None = None
    base_dir: Path = field(kw_only=True, compare=False)

    def __post_init__(self) -> None:
        self.base_dir = Path(self.base_dir)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self) -> None:
        """Check the node definition; default an empty name.

        Raises:
            NodeConfigError: On an invalid name, type or configuration.
        """
        if not self.name:
            self.name = "dev" if self.config.dev is None else "prod"

        if self.type not in NODE_TYPES:
            raise NodeConfigError(
                f"invalid node type (`{self.type}`): expected either empty (``), "
                f"OpenBao (`bao`), or HashiCorp Vault (`vault`)"
            )

        try:
            validate_name(self.name)
        except ValueError as e:
            raise NodeConfigError(f"invalid node name (`{self.name}`): {e}") from e

        self.config.validate()

    @property
    def product(self) -> ProductType:
        return ProductType(self.type)

    def get_directory(self) -> Path:
        return node_directory(self.base_dir, self.name)

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    def build_exec(self) -> ExecEnvironment:
        """Resolve the node into a runnable ExecEnvironment.

        Creates the node directory and writes ``config.hcl`` for non-dev
        nodes. No process is spawned. On failure ``self.exec`` is left
        untouched.

        Raises:
            NodeConfigError: If the definition is invalid.
            NodePersistenceError: If the directory or config file cannot be written.
        """
        try:
            self.validate()
        except NodeConfigError as e:
            raise NodeConfigError(f"failed to validate node definition: {e}") from e

        directory = self.get_directory()
        try:
            directory.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError as e:
            raise NodePersistenceError(
                f"failed to create node directory ({directory}): {e}", str(directory), "create"
            ) from e

        try:
            addr, _ = self.config.get_connect_addr()
        except NodeConfigError as e:
            raise NodeConfigError(
                f"failed to get connection address for node {self.name}: {e}"
            ) from e

        try:
            args = self.config.add_args(directory)
        except NodeConfigError as e:
            raise NodeConfigError(f"failed to build arguments to binary: {e}") from e

        try:
            body = self.config.to_config(directory)
            if not body and self.config.dev is None:
                raise NodeConfigError(
                    "expected non-dev server to have non-empty configuration; "
                    "are listeners or storage missing"
                )
        except NodeConfigError as e:
            raise NodeConfigError(f"failed to build node's configuration ({self.name}): {e}") from e

        if body:
            path = persistence.save_instance_config(directory, body)
            args.append(f"-config={path}")

        self.exec = ExecEnvironment(
            args=tuple(args),
            directory=str(directory),
            connect_address=addr,
        )
        logger.debug("Built exec environment for node '%s': %s", self.name, self.exec.args)
        return self.exec

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the node from scratch.

        Any previous process is killed on a best-effort basis and the node
        directory is wiped before resuming. Only ``clean`` and ``resume``
        failures are reported.
        """
        try:
            self.kill()
        except DevbaoError as e:
            logger.debug("Ignoring kill failure before starting node '%s': %s", self.name, e)

        try:
            self.clean()
        except NodePersistenceError as e:
            raise NodePersistenceError(
                f"failed to clean up existing node: {e}", e.path, e.operation
            ) from e

        self.resume()

    def resume(self) -> None:
        """Launch the node reusing its existing directory, then save the snapshot.

        Raises:
            NodeConfigError: If the definition is invalid.
            NodePersistenceError: If writing the directory or files fails.
            NodeLaunchError: If the server binary cannot be started.
        """
        exec_env = self.build_exec()

        launch = process.LAUNCHERS[self.product]
        launch(exec_env)
        logger.info(
            "Node '%s' running (pid %s) at %s",
            self.name,
            exec_env.pid,
            exec_env.connect_address,
        )

        self.save_config()

    def kill(self) -> None:
        """Stop the node's server process.

        Without a live in-memory handle, a fresh copy of the node is loaded
        from disk and its recorded process is killed instead; this Node is
        left as it was.

        Raises:
            NodeNotRunningError: If no process is recorded or it is gone.
            NodePersistenceError: If the snapshot cannot be loaded.
        """
        if self.exec is None or self.exec.pid == 0:
            try:
                disk = load_node(self.name, base_dir=self.base_dir)
            except NodePersistenceError as e:
                raise NodePersistenceError(
                    f"error loading node from disk while killing: {e}", e.path, e.operation
                ) from e
            disk._kill_own()
            return

        self._kill_own()

    def _kill_own(self) -> None:
        if self.exec is None:
            raise NodeNotRunningError(f"node '{self.name}' has no recorded process")

        pid = self.exec.pid
        self.exec.kill()
        logger.info("Killed node '%s' (pid %s)", self.name, pid)

        if self.get_directory().is_dir():
            self.save_config()

    def clean(self) -> None:
        """Remove the node directory; a missing directory is not an error."""
        directory = self.get_directory()
        try:
            shutil.rmtree(directory)
        except FileNotFoundError:
            return
        except OSError as e:
            raise NodePersistenceError(
                f"failed to remove node directory ({directory}): {e}", str(directory), "remove"
            ) from e
        logger.info("Removed node directory %s", directory)

    def is_running(self) -> bool:
        """Whether the recorded process is alive."""
        return self.exec is not None and self.exec.is_running()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load_config(self) -> None:
        """Populate this node from its snapshot on disk."""
        snapshot = persistence.read_snapshot(self.get_directory())
        try:
            self._apply_snapshot(snapshot)
        except NodeConfigError as e:
            path = str(self.get_directory() / persistence.NODE_JSON_NAME)
            raise NodePersistenceError(f"failed to translate config: {e}", path, "decode") from e

    def _apply_snapshot(self, snapshot: persistence.NodeSnapshot) -> None:
        self.name = snapshot.name
        self.type = snapshot.type
        self.exec = (
            ExecEnvironment.from_dict(snapshot.exec.model_dump())
            if snapshot.exec is not None
            else None
        )
        self.config = NodeConfig.from_dict(snapshot.config.model_dump())

    def save_config(self) -> Path:
        """Write the node snapshot (``node.json``)."""
        try:
            self.validate()
        except NodeConfigError as e:
            raise NodeConfigError(f"failed validating config prior to saving: {e}") from e

        return persistence.save_snapshot(self.get_directory(), self.to_dict())

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "exec": self.exec.to_dict() if self.exec is not None else None,
            "config": self.config.to_dict(),
        }

    # ------------------------------------------------------------------
    # Connection surface
    # ------------------------------------------------------------------

    def get_connect_addr(self) -> str:
        """URL clients use to reach the server, e.g. ``http://127.0.0.1:8200``."""
        try:
            addr, is_tls = self.config.get_connect_addr()
        except NodeConfigError as e:
            raise NodeConfigError(
                f"failed to get connection address for node {self.name}: {e}"
            ) from e

        scheme = "https" if is_tls else "http"
        return f"{scheme}://{addr}"

    def get_token(self) -> str:
        """Root token for dev nodes; empty for others (obtain it via init)."""
        if self.config.dev is not None:
            return self.config.dev.token or DEFAULT_DEV_TOKEN
        return ""

    def get_env(self) -> dict[str, str]:
        """Environment variables pointing a CLI client at this node."""
        prefix = self.product.env_prefix if self.type in NODE_TYPES else "VAULT_"
        return {
            prefix + "ADDR": self.get_connect_addr(),
            prefix + "TOKEN": self.get_token(),
        }

    def get_client(self) -> NodeClient:
        """Administrative API client bound to this node."""
        from devbao.client import NodeClient

        return NodeClient(address=self.get_connect_addr(), token=self.get_token())


def build_node(name: str, product: str, *opts: ConfigOption, base_dir: Path | str) -> Node:
    """Build a node from options, sorted into slots by their kind.

    Listeners are appended in order; the last Storage and the last
    DevConfig win.

    Raises:
        UnknownOptionError: If an option is not a Listener, Storage or DevConfig.
        NodeConfigError: If the resulting node does not validate.
    """
    node = Node(name=name, type=product, base_dir=Path(base_dir))

    for index, opt in enumerate(opts):
        if isinstance(opt, Listener):
            node.config.listeners.append(opt)
        elif isinstance(opt, Storage):
            node.config.storage = opt
        elif isinstance(opt, DevConfig):
            node.config.dev = opt
        else:
            raise UnknownOptionError(index, opt)

    try:
        node.validate()
    except NodeConfigError as e:
        raise NodeConfigError(f"invalid node configuration: {e}") from e

    return node


def load_node(name: str, base_dir: Path | str) -> Node:
    """Load a node from its snapshot under ``base_dir``.

    Raises:
        NodePersistenceError: If the snapshot is missing or undecodable.
        NodeConfigError: If the loaded definition does not validate.
    """
    node = Node(name=name, base_dir=Path(base_dir))

    try:
        node.load_config()
    except NodePersistenceError as e:
        raise NodePersistenceError(
            f"failed to read node ({name}) configuration: {e}", e.path, e.operation
        ) from e

    try:
        node.validate()
    except NodeConfigError as e:
        raise NodeConfigError(f"invalid node ({name}) configuration: {e}") from e

    return node


def list_nodes(base_dir: Path | str) -> list[str]:
    """Names of the node directories under ``base_dir``, sorted."""
    base = Path(base_dir)
    try:
        entries = list(base.iterdir())
    except FileNotFoundError:
        return []
    except OSError as e:
        raise NodePersistenceError(
            f"error listing node directory (`{base}`): {e}", str(base), "list"
        ) from e

    return sorted(entry.name for entry in entries if entry.is_dir())
