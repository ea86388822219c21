"""Configuration options that compose into a NodeConfig.

Three families make up the closed option union:

    Listener    A network endpoint the server binds (``TCPListener``)
    Storage     The durable backend (``FileStorage``, ``RaftStorage``, ``InmemStorage``)
    DevConfig   In-memory, auto-unsealed development mode

Options are immutable. Listeners and storages render their own HCL block
and round-trip through a dict tagged with a ``type`` discriminator, which
is how the snapshot decoder recovers the concrete class.
"""

from __future__ import annotations

import functools
import json
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, ClassVar, Union

from pydantic import StrictBool, StrictStr, TypeAdapter, ValidationError

from devbao.core.errors import NodeConfigError

DEFAULT_ADDRESS = "127.0.0.1:8200"
DEFAULT_DEV_TOKEN = "devroot"

# Bind hosts that are not dialable; clients connect via loopback instead.
_WILDCARD_HOSTS = {"", "0.0.0.0", "::", "[::]"}


def _hcl_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    return json.dumps(str(value))


def hcl_block(keyword: str, label: str, attrs: dict[str, Any]) -> str:
    """Render ``keyword "label" { ... }`` with one attribute per line."""
    lines = [f"{keyword} {json.dumps(label)} {{"]
    for key, value in attrs.items():
        lines.append(f"  {key} = {_hcl_value(value)}")
    lines.append("}")
    return "\n".join(lines)


def hcl_attribute(key: str, value: Any) -> str:
    """Render a top-level ``key = value`` line."""
    return f"{key} = {_hcl_value(value)}"


def _split_host_port(address: str) -> tuple[str, str]:
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise NodeConfigError(f"listener address must be host:port, got `{address}`")
    return host, port


def dial_address(address: str) -> str:
    """Map a bind address to one a client can connect to.

    Raises:
        NodeConfigError: If ``address`` is not ``host:port``.
    """
    host, port = _split_host_port(address)
    if host in _WILDCARD_HOSTS:
        host = "127.0.0.1"
    return f"{host}:{port}"


@functools.cache
def _adapter(cls: type) -> TypeAdapter[Any]:
    return TypeAdapter(cls)


def _decode_fields(cls: type, label: str, data: dict[str, Any]) -> Any:
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise NodeConfigError(f"unknown fields for {label}: {sorted(unknown)}")

    try:
        return _adapter(cls).validate_python(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise NodeConfigError(f"invalid {label}: {problems}") from e


def _from_tagged_dict(registry: dict[str, type], family: str, data: dict[str, Any]) -> Any:
    kind = data.get("type")
    cls = registry.get(kind) if isinstance(kind, str) else None
    if cls is None:
        raise NodeConfigError(
            f"unknown {family} type `{kind}`: expected one of {sorted(registry)}"
        )

    payload = {k: v for k, v in data.items() if k != "type"}
    return _decode_fields(cls, f"{family} `{kind}`", payload)


@dataclass(frozen=True)
class Listener(ABC):
    """A network endpoint the server listens on."""

    type: ClassVar[str]

    @abstractmethod
    def connect_address(self) -> tuple[str, bool]:
        """Address clients dial, and whether it speaks TLS."""

    @abstractmethod
    def to_config(self, directory: Path) -> str:
        """Render the listener's HCL block."""

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, **asdict(self)}


@dataclass(frozen=True)
class TCPListener(Listener):
    """TCP listener.

    Attributes:
        address: host:port to bind. Wildcard hosts connect via 127.0.0.1.
        tls_disable: Serve plain HTTP when True.
        tls_cert_file: Certificate path (required when TLS is enabled).
        tls_key_file: Key path (required when TLS is enabled).
    """

    type: ClassVar[str] = "tcp"

    address: StrictStr = DEFAULT_ADDRESS
    tls_disable: StrictBool = True
    tls_cert_file: StrictStr = ""
    tls_key_file: StrictStr = ""

    def connect_address(self) -> tuple[str, bool]:
        return dial_address(self.address), not self.tls_disable

    def to_config(self, directory: Path) -> str:
        attrs: dict[str, Any] = {"address": self.address}
        if self.tls_disable:
            attrs["tls_disable"] = True
        else:
            if not self.tls_cert_file or not self.tls_key_file:
                raise NodeConfigError(
                    f"TLS listener on `{self.address}` needs both tls_cert_file and tls_key_file"
                )
            attrs["tls_cert_file"] = self.tls_cert_file
            attrs["tls_key_file"] = self.tls_key_file
        return hcl_block("listener", self.type, attrs)


@dataclass(frozen=True)
class Storage(ABC):
    """The durable backend the server persists its data to."""

    type: ClassVar[str]

    @abstractmethod
    def to_config(self, directory: Path) -> str:
        """Render the storage's HCL block."""

    def top_level_config(self, api_address: str) -> dict[str, Any]:
        """Extra top-level attributes this backend requires.

        Args:
            api_address: Dialable host:port of the primary listener.
        """
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, **asdict(self)}


def _resolve(directory: Path, path: str) -> str:
    candidate = Path(path)
    if not candidate.is_absolute():
        candidate = directory / candidate
    return str(candidate)


@dataclass(frozen=True)
class FileStorage(Storage):
    """File backend; ``path`` is relative to the node directory unless absolute."""

    type: ClassVar[str] = "file"

    path: StrictStr = "storage"

    def to_config(self, directory: Path) -> str:
        return hcl_block("storage", self.type, {"path": _resolve(directory, self.path)})


@dataclass(frozen=True)
class RaftStorage(Storage):
    """Integrated (raft) storage for a single node.

    Attributes:
        path: Data directory, relative to the node directory unless absolute.
        node_id: Raft node id; defaults to ``node1``.
        cluster_address: host:port for cluster traffic; empty means the
            primary listener's host with its port plus one.
    """

    type: ClassVar[str] = "raft"

    path: StrictStr = "raft"
    node_id: StrictStr = ""
    cluster_address: StrictStr = ""

    def to_config(self, directory: Path) -> str:
        return hcl_block(
            "storage",
            self.type,
            {"path": _resolve(directory, self.path), "node_id": self.node_id or "node1"},
        )

    def top_level_config(self, api_address: str) -> dict[str, Any]:
        address = self.cluster_address
        if not address:
            host, port = _split_host_port(api_address)
            address = f"{host}:{int(port) + 1}"
        # Cluster traffic is always TLS, whatever the API listener does.
        return {"cluster_addr": f"https://{address}"}


@dataclass(frozen=True)
class InmemStorage(Storage):
    """Non-persistent in-memory backend."""

    type: ClassVar[str] = "inmem"

    def to_config(self, directory: Path) -> str:
        return hcl_block("storage", self.type, {})


@dataclass(frozen=True)
class DevConfig:
    """Development mode: in-memory, auto-unsealed, single node.

    Attributes:
        token: Root token id; empty means ``devroot``.
        address: Listen address of the dev server.
    """

    token: StrictStr = ""
    address: StrictStr = DEFAULT_ADDRESS

    @property
    def root_token(self) -> str:
        return self.token or DEFAULT_DEV_TOKEN

    def connect_address(self) -> str:
        return dial_address(self.address)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DevConfig:
        """Rebuild from ``to_dict`` output.

        Raises:
            NodeConfigError: On unknown or mistyped fields.
        """
        dev: DevConfig = _decode_fields(cls, "dev config", data)
        return dev


ConfigOption = Union[Listener, Storage, DevConfig]

LISTENER_TYPES: dict[str, type[Listener]] = {TCPListener.type: TCPListener}

STORAGE_TYPES: dict[str, type[Storage]] = {
    FileStorage.type: FileStorage,
    RaftStorage.type: RaftStorage,
    InmemStorage.type: InmemStorage,
}


def listener_from_dict(data: dict[str, Any]) -> Listener:
    """Reconstruct a listener from its tagged dict.

    Raises:
        NodeConfigError: If the ``type`` tag or a field is unknown.
    """
    listener: Listener = _from_tagged_dict(LISTENER_TYPES, "listener", data)
    return listener


def storage_from_dict(data: dict[str, Any]) -> Storage:
    """Reconstruct a storage backend from its tagged dict.

    Raises:
        NodeConfigError: If the ``type`` tag or a field is unknown.
    """
    storage: Storage = _from_tagged_dict(STORAGE_TYPES, "storage", data)
    return storage
