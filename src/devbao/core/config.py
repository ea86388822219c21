"""NodeConfig - the composed configuration of one node.

A NodeConfig holds the options sorted into three slots and derives
everything needed to launch the server from them:

- the connect address and TLS flag
- the process arguments
- the product-native configuration body (HCL)

Dev mode needs no configuration file, so its body is empty.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from devbao.core.errors import NodeConfigError
from devbao.core.options import (
    DEFAULT_ADDRESS,
    DevConfig,
    Listener,
    Storage,
    hcl_attribute,
    listener_from_dict,
    storage_from_dict,
)

logger = logging.getLogger(__name__)


@dataclass
class NodeConfig:
    """Listeners, storage and dev mode of a node.

    Attributes:
        listeners: Listeners in configuration order; the first is primary.
        storage: The storage backend (required unless dev mode).
        dev: Present for dev-mode nodes.
    """

    listeners: list[Listener] = field(default_factory=list)
    storage: Storage | None = None
    dev: DevConfig | None = None

    def validate(self) -> None:
        """Check the configuration can be turned into a running server.

        Raises:
            NodeConfigError: If a non-dev config lacks listeners or storage.
        """
        if self.dev is not None:
            return

        if not self.listeners:
            raise NodeConfigError(
                "non-dev node requires at least one listener; none were given"
            )

        if self.storage is None:
            raise NodeConfigError("non-dev node requires a storage backend; none was given")

    def get_connect_addr(self) -> tuple[str, bool]:
        """Address clients connect to, and whether it uses TLS.

        Dev mode uses the dev server's listen address; otherwise the
        primary (first) listener decides. Wildcard hosts map to loopback.
        """
        if self.dev is not None:
            return self.dev.connect_address(), False

        if not self.listeners:
            raise NodeConfigError("no listener to derive a connect address from")

        return self.listeners[0].connect_address()

    def add_args(self, directory: Path) -> list[str]:
        """Build the server's process arguments.

        The ``-config=`` argument is appended later, once the instance
        configuration has been written.
        """
        args = ["server"]
        if self.dev is not None:
            args.append("-dev")
            args.append(f"-dev-root-token-id={self.dev.root_token}")
            args.append(f"-dev-listen-address={self.dev.address}")
        return args

    def to_config(self, directory: Path) -> str:
        """Render the instance configuration; empty for dev mode."""
        if self.dev is not None:
            if self.listeners or self.storage is not None:
                logger.debug("dev mode ignores configured listeners and storage")
            return ""

        sections: list[str] = []

        top_level: dict[str, Any] = {"disable_mlock": True}
        addr = DEFAULT_ADDRESS
        if self.listeners:
            addr, tls = self.listeners[0].connect_address()
            scheme = "https" if tls else "http"
            top_level["api_addr"] = f"{scheme}://{addr}"
        if self.storage is not None:
            top_level.update(self.storage.top_level_config(addr))

        if self.listeners or self.storage is not None:
            sections.append("\n".join(hcl_attribute(k, v) for k, v in top_level.items()))

        for listener in self.listeners:
            sections.append(listener.to_config(directory))

        if self.storage is not None:
            sections.append(self.storage.to_config(directory))

        if not sections:
            return ""
        return "\n\n".join(sections) + "\n"

    def to_dict(self) -> dict[str, Any]:
        return {
            "listeners": [listener.to_dict() for listener in self.listeners],
            "storage": self.storage.to_dict() if self.storage is not None else None,
            "dev": self.dev.to_dict() if self.dev is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NodeConfig:
        """Rebuild from the generic form produced by ``to_dict``.

        Listener and storage entries are classified by their ``type`` tag.
        """
        storage_data = data.get("storage")
        dev_data = data.get("dev")

        return cls(
            listeners=[listener_from_dict(item) for item in data.get("listeners") or []],
            storage=storage_from_dict(storage_data) if storage_data else None,
            dev=DevConfig.from_dict(dev_data) if dev_data is not None else None,
        )
