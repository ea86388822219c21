"""Tests for listener, storage and dev configuration options."""

from pathlib import Path

import pytest

from devbao.core.errors import NodeConfigError
from devbao.core.options import (
    DevConfig,
    FileStorage,
    InmemStorage,
    RaftStorage,
    TCPListener,
    hcl_block,
    listener_from_dict,
    storage_from_dict,
)


class TestHcl:
    """Tests for HCL rendering helpers."""

    def test_block_renders_typed_values(self):
        text = hcl_block("listener", "tcp", {"address": "127.0.0.1:8200", "tls_disable": True})

        assert text == (
            'listener "tcp" {\n'
            '  address = "127.0.0.1:8200"\n'
            "  tls_disable = true\n"
            "}"
        )

    def test_strings_are_escaped(self):
        text = hcl_block("storage", "file", {"path": 'a"b'})
        assert 'path = "a\\"b"' in text


class TestTCPListener:
    """Tests for TCPListener."""

    def test_defaults_to_plain_http_on_loopback(self):
        assert TCPListener().connect_address() == ("127.0.0.1:8200", False)

    def test_wildcard_host_connects_via_loopback(self):
        assert TCPListener(address="0.0.0.0:8300").connect_address() == ("127.0.0.1:8300", False)
        assert TCPListener(address=":8300").connect_address() == ("127.0.0.1:8300", False)

    def test_tls_listener_reports_tls(self):
        listener = TCPListener(
            address="localhost:8443",
            tls_disable=False,
            tls_cert_file="/certs/cert.pem",
            tls_key_file="/certs/key.pem",
        )

        assert listener.connect_address() == ("localhost:8443", True)
        text = listener.to_config(Path("/node"))
        assert 'tls_cert_file = "/certs/cert.pem"' in text
        assert "tls_disable" not in text

    def test_tls_without_files_is_a_config_error(self):
        listener = TCPListener(tls_disable=False)
        with pytest.raises(NodeConfigError, match="tls_cert_file"):
            listener.to_config(Path("/node"))

    def test_address_without_port_is_rejected(self):
        with pytest.raises(NodeConfigError, match="host:port"):
            TCPListener(address="localhost").connect_address()

    def test_options_are_immutable(self):
        listener = TCPListener()
        with pytest.raises(AttributeError):
            listener.address = "other:1"  # type: ignore[misc]


class TestStorage:
    """Tests for storage backends."""

    def test_file_storage_path_is_rooted_at_node_directory(self):
        text = FileStorage().to_config(Path("/nodes/n1"))
        assert 'storage "file"' in text
        assert 'path = "/nodes/n1/storage"' in text

    def test_file_storage_absolute_path_is_kept(self):
        text = FileStorage(path="/data/bao").to_config(Path("/nodes/n1"))
        assert 'path = "/data/bao"' in text

    def test_raft_cluster_addr_follows_listener_port(self):
        storage = RaftStorage()
        assert storage.top_level_config("127.0.0.1:8300") == {
            "cluster_addr": "https://127.0.0.1:8301"
        }
        assert 'node_id = "node1"' in storage.to_config(Path("/n"))

    def test_raft_explicit_cluster_address_is_kept(self):
        storage = RaftStorage(cluster_address="10.0.0.5:9000")
        assert storage.top_level_config("127.0.0.1:8300") == {
            "cluster_addr": "https://10.0.0.5:9000"
        }

    def test_inmem_storage_block_is_empty(self):
        assert InmemStorage().to_config(Path("/n")) == 'storage "inmem" {\n}'


class TestTaggedDicts:
    """Tests for the type-tagged dict form used in snapshots."""

    def test_listener_dict_carries_type_tag(self):
        data = TCPListener(address="127.0.0.1:8300").to_dict()
        assert data["type"] == "tcp"
        assert listener_from_dict(data) == TCPListener(address="127.0.0.1:8300")

    def test_storage_is_classified_by_tag(self):
        assert storage_from_dict({"type": "raft", "node_id": "a"}) == RaftStorage(node_id="a")
        assert storage_from_dict({"type": "inmem"}) == InmemStorage()

    def test_unknown_tag_is_rejected(self):
        with pytest.raises(NodeConfigError, match="unknown storage type `consul`"):
            storage_from_dict({"type": "consul"})

    def test_missing_tag_is_rejected(self):
        with pytest.raises(NodeConfigError, match="unknown listener type"):
            listener_from_dict({"address": "127.0.0.1:8200"})

    def test_unknown_field_is_rejected(self):
        with pytest.raises(NodeConfigError, match="unknown fields"):
            listener_from_dict({"type": "tcp", "port": 8200})


class TestDevConfig:
    """Tests for DevConfig."""

    def test_root_token_defaults_to_devroot(self):
        assert DevConfig().root_token == "devroot"
        assert DevConfig(token="s.abc").root_token == "s.abc"

    def test_from_empty_dict(self):
        assert DevConfig.from_dict({}) == DevConfig()

    def test_from_dict_rejects_unknown_fields(self):
        with pytest.raises(NodeConfigError, match="unknown fields for dev config"):
            DevConfig.from_dict({"token": "t", "port": 8200})

    def test_from_dict_rejects_mistyped_token(self):
        with pytest.raises(NodeConfigError, match="token"):
            DevConfig.from_dict({"token": 1234})

    def test_wildcard_address_connects_via_loopback(self):
        assert DevConfig(address="0.0.0.0:8300").connect_address() == "127.0.0.1:8300"


class TestFieldTypes:
    """Decoded fields must have the declared types."""

    def test_numeric_address_is_rejected(self):
        with pytest.raises(NodeConfigError, match="invalid listener `tcp`: address"):
            listener_from_dict({"type": "tcp", "address": 8200})

    def test_string_boolean_is_rejected(self):
        with pytest.raises(NodeConfigError, match="tls_disable"):
            listener_from_dict({"type": "tcp", "tls_disable": "false"})

    def test_null_path_is_rejected(self):
        with pytest.raises(NodeConfigError, match="invalid storage `file`: path"):
            storage_from_dict({"type": "file", "path": None})

    def test_well_typed_fields_decode(self):
        listener = listener_from_dict(
            {"type": "tcp", "address": "0.0.0.0:8443", "tls_disable": False}
        )
        assert listener == TCPListener(address="0.0.0.0:8443", tls_disable=False)
