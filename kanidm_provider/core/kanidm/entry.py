"""Kanidm entry attributes and request envelopes.

Kanidm encodes every attribute as a list of values, but some endpoints
return bare scalars. ``Entry`` hides that: reads always come back in the
shape the caller asked for.

Usage:
    entry = Entry.from_response(client.get_json("/v1/group/developers"))
    entry.get_string("description")      # "Dev team"
    entry.get_string_list("member")      # ["alice@idm.example.com", ...] or []
"""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from .exceptions import DecodeError


class ValueKind(Enum):
    SCALAR = "scalar"
    SEQUENCE = "sequence"
    OTHER = "other"


@dataclass(frozen=True)
class AttrValue:
    """One attribute value: a scalar string, a sequence of strings, or something else.

    Non-string items inside a sequence are dropped from ``items``. ``head``
    holds the first raw element only when that element is a string.
    """
    kind: ValueKind
    scalar: str = ""
    items: tuple = ()
    head: str = ""

    @classmethod
    def from_raw(cls, raw: Any) -> "AttrValue":
        if isinstance(raw, str):
            return cls(ValueKind.SCALAR, scalar=raw)
        if isinstance(raw, (list, tuple)):
            head = raw[0] if raw and isinstance(raw[0], str) else ""
            return cls(ValueKind.SEQUENCE, items=tuple(item for item in raw if isinstance(item, str)), head=head)
        return cls(ValueKind.OTHER)

    def first(self) -> str:
        if self.kind is ValueKind.SCALAR:
            return self.scalar
        if self.kind is ValueKind.SEQUENCE:
            return self.head
        return ""

    def as_list(self) -> List[str]:
        if self.kind is ValueKind.SCALAR:
            return [self.scalar]
        if self.kind is ValueKind.SEQUENCE:
            return list(self.items)
        return []


@dataclass
class Entry:
    """Normalized view over the ``attrs`` map of a Kanidm entry."""
    attrs: Dict[str, AttrValue] = field(default_factory=dict)

    @classmethod
    def from_attrs(cls, attrs: Mapping[str, Any]) -> "Entry":
        return cls({key: AttrValue.from_raw(value) for key, value in attrs.items()})

    @classmethod
    def from_response(cls, data: Any, operation: Optional[str] = None) -> "Entry":
        """Build an entry from a decoded GET response (``{"attrs": {...}}``).

        Raises:
            DecodeError: If the response is not an object with an ``attrs`` object
        """
        if not isinstance(data, dict):
            raise DecodeError(f"decode response: expected object, got {type(data).__name__}", operation)
        attrs = data.get("attrs")
        if attrs is None:
            attrs = {}
        if not isinstance(attrs, dict):
            raise DecodeError(f"decode response: 'attrs' must be an object, got {type(attrs).__name__}", operation)
        return cls.from_attrs(attrs)

    def has(self, key: str) -> bool:
        """True if the key is present, whatever its value."""
        return key in self.attrs

    def get_string(self, key: str) -> str:
        """Return a scalar, the first element of a sequence, or "" when absent."""
        value = self.attrs.get(key)
        return value.first() if value is not None else ""

    def get_string_list(self, key: str) -> List[str]:
        """Return the sequence, a lone scalar wrapped in a list, or [] when absent.

        Never returns None, so "no value" and "empty" compare equal.
        """
        value = self.attrs.get(key)
        return value.as_list() if value is not None else []


def attrs_payload(attrs: Mapping[str, Any]) -> Dict[str, Any]:
    """Wrap attributes in the ``{"attrs": {...}}`` envelope used by create and update."""
    return {"attrs": dict(attrs)}


def string_field(data: Any, key: str, operation: Optional[str] = None) -> str:
    """Extract a required string field from a plain (non-attrs) JSON object.

    Raises:
        DecodeError: If the object or the field is missing
    """
    value = data.get(key) if isinstance(data, dict) else None
    if not isinstance(value, str):
        raise DecodeError(f"decode response: missing string field '{key}'", operation)
    return value
