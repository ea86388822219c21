"""Tests for node name validation."""

import pytest

from devbao.core.validation import is_valid_name, validate_name


class TestValidateName:
    """Tests for validate_name function."""

    def test_default_names_are_valid(self):
        """The defaulted names dev and prod pass."""
        validate_name("dev")
        validate_name("prod")

    def test_mixed_case_and_underscores_are_valid(self):
        validate_name("My_Node")
        validate_name("bao-1.raft")

    def test_rejects_path_separators(self):
        """Names become directories, so traversal must be impossible."""
        with pytest.raises(ValueError, match="path separators"):
            validate_name("../etc")
        with pytest.raises(ValueError, match="path separators"):
            validate_name("a/b")
        with pytest.raises(ValueError, match="path separators"):
            validate_name("a\\b")

    def test_rejects_dot_names(self):
        with pytest.raises(ValueError, match="`..`"):
            validate_name("..")
        with pytest.raises(ValueError, match="`..`"):
            validate_name(".")

    def test_invalid_empty(self):
        with pytest.raises(ValueError, match="Node name is required"):
            validate_name("")

    def test_invalid_too_long(self):
        with pytest.raises(ValueError, match="255 characters"):
            validate_name("a" * 256)


class TestIsValidName:
    """Tests for is_valid_name function."""

    def test_valid_returns_true(self):
        assert is_valid_name("dev") is True
        assert is_valid_name("My_Node") is True

    def test_invalid_returns_false(self):
        assert is_valid_name("") is False
        assert is_valid_name("a/b") is False
        assert is_valid_name("a" * 256) is False
