"""Tests for node snapshots on disk."""

import json

import pytest

from devbao.core.errors import NodeConfigError, NodePersistenceError
from devbao.core.exec_env import ExecEnvironment
from devbao.core.node import build_node, load_node
from devbao.core.options import DevConfig, FileStorage, RaftStorage, TCPListener
from devbao.core.persistence import read_snapshot, save_instance_config, save_snapshot


def _write_snapshot(base_dir, name, data):
    directory = base_dir / name
    directory.mkdir(parents=True)
    (directory / "node.json").write_text(json.dumps(data))
    return directory


class TestRoundTrip:
    """Save-then-load yields an equal node."""

    def test_multiple_listeners_round_trip(self, base_dir):
        node = build_node(
            "n1",
            "bao",
            TCPListener(address="127.0.0.1:8300"),
            TCPListener(
                address="0.0.0.0:8443",
                tls_disable=False,
                tls_cert_file="/c.pem",
                tls_key_file="/k.pem",
            ),
            RaftStorage(node_id="r1"),
            base_dir=base_dir,
        )
        node.get_directory().mkdir(parents=True)
        node.exec = ExecEnvironment(
            args=("server", "-config=/x/config.hcl"),
            directory=str(node.get_directory()),
            connect_address="127.0.0.1:8300",
            pid=4242,
        )

        node.save_config()
        loaded = load_node("n1", base_dir=base_dir)

        assert loaded == node
        assert loaded.config.listeners[1].tls_disable is False
        assert loaded.exec is not None
        assert loaded.exec.pid == 4242

    def test_dev_node_round_trip(self, base_dir):
        node = build_node("", "vault", DevConfig(token="tok"), base_dir=base_dir)
        node.get_directory().mkdir(parents=True)

        node.save_config()
        loaded = load_node(node.name, base_dir=base_dir)

        assert loaded == node
        assert loaded.exec is None
        assert loaded.config.dev == DevConfig(token="tok")

    def test_snapshot_json_layout(self, base_dir):
        node = build_node("n1", "", TCPListener(), FileStorage(), base_dir=base_dir)
        node.get_directory().mkdir(parents=True)

        path = node.save_config()

        data = json.loads(path.read_text())
        assert set(data) == {"name", "type", "exec", "config"}
        assert data["config"]["listeners"][0]["type"] == "tcp"
        assert data["config"]["storage"] == {"type": "file", "path": "storage"}
        assert data["config"]["dev"] is None

    def test_save_overwrites_previous_snapshot(self, base_dir):
        node = build_node("n1", "", TCPListener(), FileStorage(), base_dir=base_dir)
        node.get_directory().mkdir(parents=True)
        (node.get_directory() / "node.json").write_text("x" * 10000)

        node.save_config()

        assert load_node("n1", base_dir=base_dir) == node


class TestLoadFailures:
    """Load errors are fatal."""

    def test_missing_snapshot(self, base_dir):
        with pytest.raises(NodePersistenceError, match="failed to read node \\(ghost\\)") as exc:
            load_node("ghost", base_dir=base_dir)
        assert exc.value.operation == "read"

    def test_invalid_json(self, base_dir):
        directory = base_dir / "n1"
        directory.mkdir(parents=True)
        (directory / "node.json").write_text("{not json")

        with pytest.raises(NodePersistenceError) as exc:
            load_node("n1", base_dir=base_dir)
        assert exc.value.operation == "decode"

    def test_unknown_listener_variant(self, base_dir):
        _write_snapshot(
            base_dir,
            "n1",
            {
                "name": "n1",
                "type": "bao",
                "config": {
                    "listeners": [{"type": "quic", "address": "127.0.0.1:8200"}],
                    "storage": {"type": "file"},
                },
            },
        )

        with pytest.raises(NodePersistenceError, match="unknown listener type `quic`"):
            load_node("n1", base_dir=base_dir)

    def test_mistyped_variant_fields(self, base_dir):
        _write_snapshot(
            base_dir,
            "n1",
            {
                "name": "n1",
                "type": "bao",
                "config": {
                    "listeners": [{"type": "tcp", "address": 8200, "tls_disable": "false"}],
                    "storage": {"type": "file", "path": None},
                },
            },
        )

        with pytest.raises(NodePersistenceError, match="failed to translate config") as exc:
            load_node("n1", base_dir=base_dir)
        assert exc.value.operation == "decode"

    def test_structurally_malformed_snapshot(self, base_dir):
        _write_snapshot(base_dir, "n1", {"name": "n1", "config": {"listeners": "tcp"}})

        with pytest.raises(NodePersistenceError, match="malformed"):
            load_node("n1", base_dir=base_dir)

    def test_loaded_node_is_validated(self, base_dir):
        _write_snapshot(
            base_dir,
            "n1",
            {"name": "n1", "type": "consul", "config": {"dev": {}}},
        )

        with pytest.raises(NodeConfigError, match="invalid node type"):
            load_node("n1", base_dir=base_dir)


class TestFiles:
    """Tests for the low-level file helpers."""

    def test_read_snapshot_validates_structure(self, tmp_path):
        save_snapshot(tmp_path, {"name": "n1", "type": "", "exec": None, "config": {}})

        snapshot = read_snapshot(tmp_path)

        assert snapshot.name == "n1"
        assert snapshot.config.listeners == []
        assert snapshot.config.storage is None

    def test_save_instance_config(self, tmp_path):
        path = save_instance_config(tmp_path, 'storage "inmem" {\n}\n')

        assert path == tmp_path / "config.hcl"
        assert path.read_text() == 'storage "inmem" {\n}\n'

    def test_write_into_missing_directory_fails(self, tmp_path):
        with pytest.raises(NodePersistenceError) as exc:
            save_instance_config(tmp_path / "missing", "x")
        assert exc.value.operation == "write"
