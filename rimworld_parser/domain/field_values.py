"""Typed field tree values.

A definition's fields form a strict tree of three variants mirroring the
XML nesting:

  - Scalar     → element with text (or nothing) inside
  - ListValue  → element whose children are all <li>
  - Composite  → element with named child elements

Every variant carries the element's attributes. Values are treated as
immutable once built so resolved trees can share unmodified subtrees with
their parents.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class Scalar:
    """A text leaf."""

    value: str
    attributes: dict[str, str] = field(default_factory=dict)

    kind = 'scalar'

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {'kind': self.kind, 'value': self.value}
        if self.attributes:
            data['attributes'] = dict(self.attributes)
        return data


@dataclass(frozen=True)
class ListValue:
    """An ordered sequence of values (<li> items).

    ``append`` is the merge marker: when set, the items are appended to the
    inherited list instead of replacing it.
    """

    items: tuple[FieldValue, ...] = ()
    attributes: dict[str, str] = field(default_factory=dict)
    append: bool = False

    kind = 'list'

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {'kind': self.kind, 'items': [item.to_dict() for item in self.items]}
        if self.attributes:
            data['attributes'] = dict(self.attributes)
        return data


@dataclass(frozen=True)
class Composite:
    """Named fields in document order.

    ``replace`` is the merge marker: when set, the composite replaces the
    inherited one instead of being merged into it.
    """

    fields: dict[str, FieldValue] = field(default_factory=dict)
    attributes: dict[str, str] = field(default_factory=dict)
    replace: bool = False

    kind = 'composite'

    def get(self, name: str) -> FieldValue | None:
        return self.fields.get(name)

    def get_text(self, name: str) -> str | None:
        """Return the text of a scalar child field, or None."""
        value = self.fields.get(name)
        return value.value if isinstance(value, Scalar) else None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            'kind': self.kind,
            'fields': {name: value.to_dict() for name, value in self.fields.items()},
        }
        if self.attributes:
            data['attributes'] = dict(self.attributes)
        return data


FieldValue = Union[Scalar, ListValue, Composite]
