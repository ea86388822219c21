"""Pytest configuration and fixtures."""

import os
import signal
import stat
from pathlib import Path

import pytest

from devbao.core import process

FAKE_SERVER = """#!/bin/sh
# Stand-in for bao/vault: ignores its arguments and idles until signalled.
exec sleep 60
"""


@pytest.fixture
def base_dir(tmp_path: Path) -> Path:
    """Base directory for node state, unique per test."""
    return tmp_path / "nodes"


@pytest.fixture
def spawned_pids(monkeypatch):
    """Record every pid spawned during the test and SIGKILL leftovers."""
    pids: list[int] = []
    original_spawn = process.spawn

    def recording_spawn(binary, exec_env):
        pid = original_spawn(binary, exec_env)
        pids.append(pid)
        return pid

    monkeypatch.setattr(process, "spawn", recording_spawn)

    yield pids

    for pid in pids:
        try:
            os.kill(pid, signal.SIGKILL)
        except ProcessLookupError:
            continue
        try:
            os.waitpid(pid, 0)
        except ChildProcessError:
            pass


@pytest.fixture
def fake_server(tmp_path: Path, monkeypatch, spawned_pids) -> Path:
    """Point both product binaries at a shell script that just sleeps."""
    script = tmp_path / "fake-server"
    script.write_text(FAKE_SERVER)
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    monkeypatch.setenv("DEVBAO_BAO_BINARY", str(script))
    monkeypatch.setenv("DEVBAO_VAULT_BINARY", str(script))
    return script
