"""Tests for nested field access over decoded JSON."""

import pytest

from copctl.extract import NOT_AVAILABLE, extract, extract_str, stringify

PRODUCT_PATH = ["assets", "PRODUCT", "href"]


class TestExtract:
    def test_nested_href(self):
        tree = {"assets": {"PRODUCT": {"href": "https://example.com/product"}}}
        assert extract(PRODUCT_PATH, tree) == "https://example.com/product"

    def test_absent_root(self):
        assert extract(PRODUCT_PATH, None) is None

    @pytest.mark.parametrize(
        "tree",
        [
            {},
            {"assets": {}},
            {"assets": {"PRODUCT": {}}},
            {"assets": {"QUICKLOOK": {"href": "https://example.com/quicklook"}}},
            {"assets": None},
        ],
    )
    def test_missing_segment(self, tree):
        assert extract(PRODUCT_PATH, tree) is None

    def test_walk_stops_at_first_leaf(self):
        assert extract(["cloudCover", "value"], {"cloudCover": 12.5}) == 12.5
        assert extract(["assets", "PRODUCT", "href"], {"assets": ["a", "b"]}) == ["a", "b"]

    def test_empty_path_returns_root(self):
        tree = {"id": "x"}
        assert extract([], tree) is tree

    def test_falsy_leaves_are_returned(self):
        assert extract(["cloudCover"], {"cloudCover": 0}) == 0
        assert extract(["online"], {"online": False}) is False

    def test_extract_str_rejects_other_types(self):
        assert extract_str(["a"], {"a": "text"}) == "text"
        assert extract_str(["a"], {"a": 3}) is None
        assert extract_str(["a", "b"], {"a": {"b": {"c": "deep"}}}) is None


class TestStringify:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("SENTINEL-2", "SENTINEL-2"),
            (12.5, "12.5"),
            (3, "3"),
            (True, "true"),
            (False, "false"),
            ([1.0, 2.5, 3.0], "1.0, 2.5, 3.0"),
            (["a", ["b", "c"]], "a, b, c"),
            ({"nested": "object"}, NOT_AVAILABLE),
            (None, NOT_AVAILABLE),
        ],
    )
    def test_values(self, value, expected):
        assert stringify(value) == expected

    def test_objects_inside_lists(self):
        assert stringify(["a", {"b": 1}, None]) == "a, N/A, N/A"
