"""
Tagged value model for document fields used in text extraction.

Stored records are heterogeneous: a field may hold plain text, a list of
rich-text blocks, or a nested structure. ``to_field_value`` classifies
a raw value once and ``flatten_to_text`` turns any variant into text, so
extraction never has to inspect types ad hoc.
"""

from dataclasses import dataclass
from typing import Any, List, Tuple, Union

# fields read, in order, when a collection has no configured field list
DEFAULT_TEXT_FIELDS = ("title", "name", "content", "body", "summary", "description", "excerpt")


@dataclass(frozen=True)
class TextValue:
    text: str


@dataclass(frozen=True)
class ListValue:
    items: Tuple["FieldValue", ...]


@dataclass(frozen=True)
class StructuredValue:
    entries: Tuple[Tuple[str, "FieldValue"], ...]


FieldValue = Union[TextValue, ListValue, StructuredValue]


def to_field_value(raw: Any) -> FieldValue:
    """Classify a raw stored value into one of the field value variants."""
    if isinstance(raw, str):
        return TextValue(raw)
    if isinstance(raw, (list, tuple)):
        return ListValue(tuple(to_field_value(item) for item in raw if item is not None))
    if isinstance(raw, dict):
        return StructuredValue(
            tuple((str(key), to_field_value(value)) for key, value in raw.items() if value is not None)
        )
    # numbers, booleans and anything else with a sensible string form
    return TextValue(str(raw))


def flatten_to_text(value: FieldValue) -> str:
    """Collect the text of a field value in document order, space separated."""
    parts: List[str] = []
    _collect(value, parts)
    return " ".join(parts)


def _collect(value: FieldValue, parts: List[str]) -> None:
    if isinstance(value, TextValue):
        text = value.text.strip()
        if text:
            parts.append(text)
    elif isinstance(value, ListValue):
        for item in value.items:
            _collect(item, parts)
    elif isinstance(value, StructuredValue):
        for key, item in value.entries:
            # block type markers carry no content
            if key in ("type", "format", "level", "url", "id"):
                continue
            _collect(item, parts)
    else:
        raise TypeError(f"Unsupported field value: {value!r}")
