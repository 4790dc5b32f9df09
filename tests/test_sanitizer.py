"""Tests for search result sanitization."""

import copy

import pytest

from sumologic_search_mcp.masking import MASK
from sumologic_search_mcp.sanitizer import (
    ItemShape,
    classify_item,
    sanitize_item,
    sanitize_items,
)


def tag(text: str) -> str:
    """Visible stand-in for the masking function."""
    return f"M({text})"


@pytest.mark.parametrize(
    "item, shape",
    [
        ({"map": {"_raw": "x"}, "_raw": "y"}, ItemShape.FIELD_MAP),
        ({"_raw": "x", "response": "y"}, ItemShape.RAW_TEXT),
        ({"_raw": "", "response": "y"}, ItemShape.RESPONSE_TEXT),
        ({"response": "y"}, ItemShape.RESPONSE_TEXT),
        ({"map": "not a mapping", "host": "a"}, ItemShape.OPAQUE_OBJECT),
        ({}, ItemShape.OPAQUE_OBJECT),
        ("plain", ItemShape.PLAIN_STRING),
        (42, ItemShape.OTHER),
        (None, ItemShape.OTHER),
        ([1, 2], ItemShape.OTHER),
    ],
)
def test_classify_item(item, shape: ItemShape) -> None:
    assert classify_item(item) is shape


def test_field_map_item_stringifies_and_masks_only_raw_and_response() -> None:
    item = {
        "map": {
            "_raw": "token=abc",
            "response": "secret=1",
            "_messagecount": 3,
            "_sourcehost": "web-1",
            "success": True,
            "missing": None,
        },
        "_raw": 123,
        "other": {"nested": 1},
    }
    original = copy.deepcopy(item)

    result = sanitize_item(item, tag)

    assert result["map"] == {
        "_raw": "M(token=abc)",
        "response": "M(secret=1)",
        "_messagecount": "3",
        "_sourcehost": "web-1",
        "success": "true",
        "missing": "",
    }
    assert result["_raw"] == "M(123)"
    assert result["other"] is item["other"]
    assert item == original


def test_field_map_item_without_top_level_raw_has_none_added() -> None:
    result = sanitize_item({"map": {"a": "b"}}, tag)
    assert result == {"map": {"a": "b"}}


@pytest.mark.parametrize("raw", ["", None])
def test_field_map_item_drops_empty_top_level_raw(raw) -> None:
    result = sanitize_item({"map": {"a": "b"}, "_raw": raw, "host": "a"}, tag)
    assert result == {"map": {"a": "b"}, "host": "a"}


def test_raw_text_item_masks_only_raw() -> None:
    item = {"_raw": "password=x", "response": "token=y", "host": "a", "count": 2}

    result = sanitize_item(item, tag)

    assert result == {"_raw": "M(password=x)", "response": "token=y", "host": "a", "count": 2}
    assert result is not item


def test_response_text_item_masks_response() -> None:
    result = sanitize_item({"response": "token=y", "code": 200}, tag)
    assert result == {"response": "M(token=y)", "code": 200}


def test_opaque_item_is_copied_and_non_string_fields_kept() -> None:
    item = {"_raw": 5, "response": None, "host": "a"}

    result = sanitize_item(item, tag)

    assert result == item
    assert result is not item


@pytest.mark.parametrize("item", [42, 1.5, None, True, [1, "token=x"]])
def test_other_items_returned_unchanged(item) -> None:
    assert sanitize_item(item, tag) is item


def test_plain_strings_are_never_masked() -> None:
    items = ["token=abc123", "alice@example.com", ""]
    assert sanitize_items(items) == items


def test_sanitize_items_preserves_order_and_uses_default_policy() -> None:
    items = [
        {"_raw": "token=abc123 failed", "_sourcehost": "web-1"},
        "plain",
        {"map": {"response": "password=pw", "status": 500}},
    ]

    result = sanitize_items(items)

    assert result == [
        {"_raw": f"token={MASK} failed", "_sourcehost": "web-1"},
        "plain",
        {"map": {"response": f"password={MASK}", "status": "500"}},
    ]


def test_sanitize_items_handles_empty_and_none() -> None:
    assert sanitize_items([]) == []
    assert sanitize_items(None) == []
