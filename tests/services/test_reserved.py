"""Tests for reserved path detection."""

import pytest

from linkly.services.reserved import RESERVED_PATHS, is_reserved_path


@pytest.mark.service
class TestReservedPaths:
    """Test suite for the reserved path predicate."""

    @pytest.mark.parametrize("path", ["dashboard", "api", "login", "favicon.ico", "not-found", "docs"])
    def test_reserved_words(self, path):
        assert is_reserved_path(path) is True

    @pytest.mark.parametrize("path", ["Dashboard", "API", "LOGIN"])
    def test_matching_is_case_insensitive(self, path):
        assert is_reserved_path(path) is True

    @pytest.mark.parametrize("path", ["", None, "a", "ab"])
    def test_empty_and_short_paths(self, path):
        assert is_reserved_path(path) is True

    @pytest.mark.parametrize("path", ["abc", "promo2024", "my-link_1"])
    def test_ordinary_codes(self, path):
        assert is_reserved_path(path) is False

    def test_min_length_override(self):
        assert is_reserved_path("abcd", min_length=6) is True
        assert is_reserved_path("abcdef", min_length=6) is False

    def test_reserved_set_is_lowercase(self):
        assert all(path == path.lower() for path in RESERVED_PATHS)
