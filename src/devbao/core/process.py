"""Spawning and signalling server processes.

Servers run detached from the supervisor (new session, output appended
to ``server.log`` in the node directory), so they outlive the command
that started them. Later invocations find them again by pid.
"""

from __future__ import annotations

import logging
import os
import shutil
import signal
import subprocess
import time
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from devbao.core.errors import NodeLaunchError, NodeNotRunningError
from devbao.core.paths import SERVER_LOG_NAME
from devbao.core.types import ProductType

if TYPE_CHECKING:
    from devbao.core.exec_env import ExecEnvironment

logger = logging.getLogger(__name__)

BINARY_ENV = {
    ProductType.BAO: "DEVBAO_BAO_BINARY",
    ProductType.VAULT: "DEVBAO_VAULT_BINARY",
}


def resolve_binary(product: ProductType) -> str:
    """Find the executable for a product.

    ``DEVBAO_BAO_BINARY`` / ``DEVBAO_VAULT_BINARY`` override the lookup.
    The default product uses the first of ``bao`` and ``vault`` found on
    PATH.

    Raises:
        NodeLaunchError: If no binary can be found.
    """
    if product is ProductType.DEFAULT:
        candidates = [ProductType.BAO, ProductType.VAULT]
    else:
        candidates = [product]

    for candidate in candidates:
        override = os.environ.get(BINARY_ENV[candidate])
        if override:
            return override
        found = shutil.which(candidate.value)
        if found:
            return found

    names = " or ".join(f"`{c.value}`" for c in candidates)
    raise NodeLaunchError(f"unable to find {names} binary on PATH")


def spawn(binary: str, exec_env: ExecEnvironment) -> int:
    """Start ``binary`` with the environment's args in its directory.

    Returns:
        The pid of the new process.

    Raises:
        NodeLaunchError: If the process cannot be started.
    """
    log_path = Path(exec_env.directory) / SERVER_LOG_NAME
    command = [binary, *exec_env.args]

    try:
        with open(log_path, "ab") as log_file:
            proc = subprocess.Popen(
                command,
                cwd=exec_env.directory,
                stdin=subprocess.DEVNULL,
                stdout=log_file,
                stderr=subprocess.STDOUT,
                start_new_session=True,
            )
    except OSError as e:
        raise NodeLaunchError(f"failed to launch `{binary}`: {e}") from e

    logger.info("Spawned %s (pid %s) in %s", binary, proc.pid, exec_env.directory)
    return proc.pid


def _launcher(product: ProductType) -> Callable[[ExecEnvironment], None]:
    def launch(exec_env: ExecEnvironment) -> None:
        exec_env.pid = spawn(resolve_binary(product), exec_env)

    launch.__name__ = f"exec_{product.name.lower()}"
    return launch


exec_default = _launcher(ProductType.DEFAULT)
exec_bao = _launcher(ProductType.BAO)
exec_vault = _launcher(ProductType.VAULT)

LAUNCHERS: dict[ProductType, Callable[[ExecEnvironment], None]] = {
    ProductType.DEFAULT: exec_default,
    ProductType.BAO: exec_bao,
    ProductType.VAULT: exec_vault,
}


def process_exists(pid: int) -> bool:
    """Whether ``pid`` names a live (non-zombie) process."""
    if pid <= 0:
        return False

    # Reap our own exited children so they do not linger as zombies.
    try:
        reaped, _ = os.waitpid(pid, os.WNOHANG)
        if reaped == pid:
            return False
    except ChildProcessError:
        pass

    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


def wait_for_process_exit(pid: int, timeout: float = 5.0) -> bool:
    """Wait for a process to exit.

    Returns True if exited, False if still running after timeout.
    """
    start = time.time()
    while time.time() - start < timeout:
        if not process_exists(pid):
            return True
        time.sleep(0.1)
    return not process_exists(pid)


def _signal(pid: int, sig: signal.Signals) -> None:
    try:
        os.kill(pid, sig)
    except ProcessLookupError as e:
        raise NodeNotRunningError(f"process {pid} exited before it could be stopped") from e
    except OSError as e:
        # A stale pid may since have been reused by another user's process.
        raise NodeNotRunningError(f"cannot signal process {pid} ({sig.name}): {e}") from e


def terminate(pid: int, timeout: float = 5.0) -> None:
    """Stop a process: SIGTERM, then SIGKILL if it outlives ``timeout``.

    Raises:
        NodeNotRunningError: If no such process exists or it cannot be signalled.
    """
    if not process_exists(pid):
        raise NodeNotRunningError(f"no running process with pid {pid}")

    _signal(pid, signal.SIGTERM)

    if wait_for_process_exit(pid, timeout=timeout):
        logger.info("Process %s exited gracefully", pid)
        return

    logger.warning("Process %s did not respond to SIGTERM, force killing", pid)
    try:
        _signal(pid, signal.SIGKILL)
    except NodeNotRunningError:
        if not process_exists(pid):
            return
        raise
    wait_for_process_exit(pid, timeout=timeout)
