"""Per-field merge rules applied along an inheritance chain.

Merging a child's raw tree into its parent's resolved tree:
  - scalar in both           → child wins
  - composite in both        → merged key by key (child ``replace`` flag: child wins)
  - list in both             → child replaces, or is appended when flagged ``append``
  - different kinds          → child wins
  - only in parent           → inherited, shared with the parent's tree
  - only in child            → added after the parent's fields

Attributes merge key-wise with the child winning. Merge flags are consumed,
so resolved trees never carry them.
"""

from typing import cast

from rimworld_parser.domain.field_values import Composite, FieldValue, ListValue, Scalar


def merge_fields(parent: Composite, child: Composite) -> Composite:
    """Merge a child's raw definition tree into its parent's resolved tree."""
    return cast(Composite, _merge(parent, child))


def strip_markers(value: FieldValue) -> FieldValue:
    """Drop append/replace flags; unchanged subtrees are returned as-is."""
    if isinstance(value, ListValue):
        items = tuple(strip_markers(item) for item in value.items)
        if not value.append and _same(items, value.items):
            return value
        return ListValue(items, value.attributes)
    if isinstance(value, Composite):
        fields = {key: strip_markers(child) for key, child in value.fields.items()}
        if not value.replace and _same(tuple(fields.values()), tuple(value.fields.values())):
            return value
        return Composite(fields, value.attributes)
    return value


def _merge(parent: FieldValue, child: FieldValue) -> FieldValue:
    if isinstance(parent, Composite) and isinstance(child, Composite):
        if child.replace:
            return strip_markers(child)
        fields = dict(parent.fields)
        for key, value in child.fields.items():
            inherited = fields.get(key)
            fields[key] = strip_markers(value) if inherited is None else _merge(inherited, value)
        return Composite(fields, {**parent.attributes, **child.attributes})

    if isinstance(parent, ListValue) and isinstance(child, ListValue):
        if not child.append:
            return strip_markers(child)
        items = parent.items + tuple(strip_markers(item) for item in child.items)
        return ListValue(items, {**parent.attributes, **child.attributes})

    if isinstance(parent, Scalar) and isinstance(child, Scalar):
        if not parent.attributes:
            return child
        return Scalar(child.value, {**parent.attributes, **child.attributes})

    return strip_markers(child)


def _same(left: tuple, right: tuple) -> bool:
    return all(a is b for a, b in zip(left, right))
