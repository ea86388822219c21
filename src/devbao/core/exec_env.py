"""ExecEnvironment - a resolved, ready-to-run server process."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from devbao.core import process


@dataclass
class ExecEnvironment:
    """Everything needed to launch (and later find) a node's process.

    Attributes:
        args: Process arguments, excluding the binary itself.
        directory: Absolute path of the node directory; the process cwd.
        connect_address: host:port the server will listen on.
        pid: Process id; 0 means not running from this handle.
    """

    args: tuple[str, ...]
    directory: str
    connect_address: str
    pid: int = 0

    def is_running(self) -> bool:
        return process.process_exists(self.pid)

    def kill(self, timeout: float = 5.0) -> None:
        """Terminate the recorded process and forget its pid.

        Raises:
            NodeNotRunningError: If there is no live process to kill.
        """
        process.terminate(self.pid, timeout=timeout)
        self.pid = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "args": list(self.args),
            "directory": self.directory,
            "connect_address": self.connect_address,
            "pid": self.pid,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExecEnvironment:
        return cls(
            args=tuple(data.get("args") or ()),
            directory=data["directory"],
            connect_address=data["connect_address"],
            pid=data.get("pid") or 0,
        )
