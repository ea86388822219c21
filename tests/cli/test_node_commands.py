"""Tests for node CLI commands."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from devbao.frontends.cli.main import cli
from devbao.frontends.cli.node import (
    node,
    node_clean,
    node_env,
    node_list,
    node_start,
    node_stop,
)


class TestNodeCLI:
    """Tests for devbao node command definitions."""

    def test_node_group_is_registered(self):
        assert cli.commands["node"] is node

    def test_commands_exist(self):
        for name in ["start", "resume", "stop", "clean", "list", "show", "env", "status", "init"]:
            assert name in node.commands

    def test_every_command_has_base_dir_option(self):
        for command in [node_start, node_stop, node_clean, node_list, node_env]:
            param_names = [p.name for p in command.params]
            assert "base_dir" in param_names

    def test_start_has_mode_options(self):
        param_names = [p.name for p in node_start.params]
        assert {"node_type", "dev", "listen", "storage"} <= set(param_names)


class TestNodeCommandsRun:
    """End-to-end runs against a fake server binary."""

    @pytest.fixture
    def runner(self):
        return CliRunner()

    def invoke(self, runner, base_dir, *args):
        return runner.invoke(cli, ["node", *args, "--base-dir", str(base_dir)])

    def test_dev_node_lifecycle(self, runner, base_dir, fake_server):
        result = self.invoke(runner, base_dir, "start", "--dev", "--type", "bao")
        assert result.exit_code == 0, result.output
        assert "Started node 'prod'" in result.output

        result = self.invoke(runner, base_dir, "env", "prod")
        assert result.exit_code == 0
        assert "export BAO_ADDR=http://127.0.0.1:8200" in result.output
        assert "export BAO_TOKEN=devroot" in result.output

        result = self.invoke(runner, base_dir, "list", "--json")
        assert result.exit_code == 0
        infos = json.loads(result.output)
        assert infos == [
            {
                "name": "prod",
                "type": "bao",
                "state": "running",
                "address": "http://127.0.0.1:8200",
            }
        ]

        result = self.invoke(runner, base_dir, "stop", "prod")
        assert result.exit_code == 0, result.output

        result = self.invoke(runner, base_dir, "clean", "prod")
        assert result.exit_code == 0
        assert not (base_dir / "prod").exists()

    def test_quick_start_sequence(self, runner, base_dir, fake_server):
        assert "devbao node start dev --dev" in cli.help

        result = self.invoke(runner, base_dir, "start", "dev", "--dev")
        assert result.exit_code == 0, result.output

        result = self.invoke(runner, base_dir, "env", "dev")
        assert result.exit_code == 0, result.output
        assert "TOKEN=devroot" in result.output

        result = self.invoke(runner, base_dir, "stop", "dev")
        assert result.exit_code == 0, result.output

    def test_non_dev_start_writes_config(self, runner, base_dir, fake_server):
        result = self.invoke(
            runner, base_dir, "start", "n1", "--listen", "127.0.0.1:8300", "--storage", "raft"
        )
        assert result.exit_code == 0, result.output

        config = (base_dir / "n1" / "config.hcl").read_text()
        assert 'storage "raft"' in config
        assert '"127.0.0.1:8300"' in config

        result = self.invoke(runner, base_dir, "show", "n1")
        snapshot = json.loads(result.output)
        assert snapshot["config"]["storage"]["type"] == "raft"
        assert snapshot["exec"]["pid"] > 0

    def test_stop_unknown_node_fails(self, runner, base_dir):
        result = self.invoke(runner, base_dir, "stop", "ghost")
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_list_empty(self, runner, base_dir):
        result = self.invoke(runner, base_dir, "list")
        assert result.exit_code == 0
        assert "No nodes" in result.output

    def test_clean_rejects_bad_name(self, runner, base_dir):
        result = self.invoke(runner, base_dir, "clean", "../etc")
        assert result.exit_code == 1
