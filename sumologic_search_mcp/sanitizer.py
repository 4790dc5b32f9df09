"""
Sanitization of Sumo Logic search result items.

Messages and records come back from the Search Job API in a few shapes. Each
item is classified once with ``classify_item`` and then handed to the
sanitizer for that shape. Only the ``_raw`` and ``response`` fields are ever
masked; everything else is copied as is.
"""

from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping

from .masking import mask_sensitive_info

MaskFunc = Callable[[str], str]

MASKED_FIELDS = ("_raw", "response")


class ItemShape(str, Enum):
    """Shapes a result item can take."""
    FIELD_MAP = "field_map"          # {"map": {...}, ...}, the usual message/record form
    RAW_TEXT = "raw_text"            # flat object with a "_raw" string
    RESPONSE_TEXT = "response_text"  # flat object with a "response" string
    PLAIN_STRING = "plain_string"
    OPAQUE_OBJECT = "opaque_object"  # any other mapping
    OTHER = "other"


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def classify_item(item: Any) -> ItemShape:
    """Work out which shape ``item`` has.

    A field map wins over a flat ``_raw``, which wins over a flat
    ``response``.
    """
    if isinstance(item, Mapping):
        if isinstance(item.get("map"), Mapping):
            return ItemShape.FIELD_MAP
        if _is_text(item.get("_raw")):
            return ItemShape.RAW_TEXT
        if _is_text(item.get("response")):
            return ItemShape.RESPONSE_TEXT
        return ItemShape.OPAQUE_OBJECT
    if isinstance(item, str):
        return ItemShape.PLAIN_STRING
    return ItemShape.OTHER


def sanitize_field_map_item(item: Mapping[str, Any], mask: MaskFunc) -> Dict[str, Any]:
    """Flatten ``item["map"]`` to strings, masking its ``_raw``/``response`` keys.

    A non-empty top-level ``_raw`` is masked as well. Other top-level fields are
    shallow-copied.
    """
    plain_map: Dict[str, str] = {}
    for key, value in item["map"].items():
        text = _stringify(value)
        plain_map[key] = mask(text) if key in MASKED_FIELDS else text

    result = dict(item)
    result["map"] = plain_map
    # An empty or missing top-level _raw is left out of the result
    raw = result.pop("_raw", None)
    if raw:
        result["_raw"] = mask(_stringify(raw))
    return result


def sanitize_raw_text_item(item: Mapping[str, Any], mask: MaskFunc) -> Dict[str, Any]:
    result = dict(item)
    result["_raw"] = mask(item["_raw"])
    return result


def sanitize_response_text_item(item: Mapping[str, Any], mask: MaskFunc) -> Dict[str, Any]:
    result = dict(item)
    result["response"] = mask(item["response"])
    return result


def sanitize_opaque_item(item: Mapping[str, Any], mask: MaskFunc) -> Dict[str, Any]:
    result = dict(item)
    for field in MASKED_FIELDS:
        if _is_text(result.get(field)):
            result[field] = mask(result[field])
    return result


def _passthrough(item: Any, mask: MaskFunc) -> Any:
    # Bare strings are never masked; only _raw/response fields are
    return item


_SANITIZERS: Dict[ItemShape, Callable[[Any, MaskFunc], Any]] = {
    ItemShape.FIELD_MAP: sanitize_field_map_item,
    ItemShape.RAW_TEXT: sanitize_raw_text_item,
    ItemShape.RESPONSE_TEXT: sanitize_response_text_item,
    ItemShape.PLAIN_STRING: _passthrough,
    ItemShape.OPAQUE_OBJECT: sanitize_opaque_item,
    ItemShape.OTHER: _passthrough,
}


def sanitize_item(item: Any, mask: MaskFunc = mask_sensitive_info) -> Any:
    """Return a sanitized copy of a single result item."""
    return _SANITIZERS[classify_item(item)](item, mask)


def sanitize_items(items: Iterable[Any], mask: MaskFunc = mask_sensitive_info) -> List[Any]:
    """Sanitize every item independently, preserving order.

    Args:
        items: Messages or records as returned by the Search Job API
        mask: Text masking function, the process-wide policy by default

    Returns:
        New list of sanitized items
    """
    return [sanitize_item(item, mask) for item in items or []]
