"""Shared utilities for walking typed field trees.

Field paths are dotted composite keys with list indices:
  - 'label'                      → simple key
  - 'comps[2].compClass'         → list item, then key
  - 'costList.Steel'             → nested key

Lookup paths use [] to iterate every list item:
  - 'comps[].compClass'
  - 'recipeMaker.recipeUsers[]'
"""

from typing import Iterator

from rimworld_parser.domain.field_values import Composite, FieldValue, ListValue, Scalar


def join_path(parent: str, key: str) -> str:
    return f"{parent}.{key}" if parent else key


def walk_field_paths(tree: FieldValue | None, path: str) -> list[str]:
    """Walk a dotted lookup path and collect all scalar values at the leaves.

    Args:
        tree: Root value to walk.
        path: Dotted path with [] for list iteration.

    Returns:
        List of scalar strings found at the leaf positions.
    """
    results: list[str] = []
    _collect(tree, path.split('.'), 0, results)
    return results


def _collect(node: FieldValue | None, parts: list[str], idx: int, results: list[str]) -> None:
    if node is None or idx >= len(parts):
        return
    key = parts[idx]

    if key.endswith('[]'):
        key = key[:-2]
        items = node.get(key) if isinstance(node, Composite) else None
        if isinstance(items, ListValue):
            if idx == len(parts) - 1:
                results.extend(item.value for item in items.items if isinstance(item, Scalar))
            else:
                for item in items.items:
                    _collect(item, parts, idx + 1, results)
    elif idx == len(parts) - 1:
        if isinstance(node, Composite) and isinstance(node.get(key), Scalar):
            results.append(node.get(key).value)
    elif isinstance(node, Composite):
        _collect(node.get(key), parts, idx + 1, results)


def iter_values(tree: FieldValue) -> Iterator[tuple[str, str | None, FieldValue]]:
    """Yield (path, field name, value) for every value below ``tree``, depth first.

    The field name is the nearest composite key above the value, so items
    of a list report the list's name. The root itself is not yielded.
    """
    stack = _children('', None, tree)
    stack.reverse()
    while stack:
        path, name, value = stack.pop()
        yield path, name, value
        stack.extend(reversed(_children(path, name, value)))


def _children(path: str, name: str | None, value: FieldValue) -> list[tuple[str, str | None, FieldValue]]:
    if isinstance(value, Composite):
        return [(join_path(path, key), key, child) for key, child in value.fields.items()]
    if isinstance(value, ListValue):
        return [(f"{path}[{i}]", name, item) for i, item in enumerate(value.items)]
    return []


def collect_attribute(tree: FieldValue, attribute: str) -> list[str]:
    """Collect every value of ``attribute`` anywhere in the tree, root included."""
    found = [tree.attributes[attribute]] if attribute in tree.attributes else []
    for _, _, value in iter_values(tree):
        if attribute in value.attributes:
            found.append(value.attributes[attribute])
    return found


def count_values(tree: FieldValue) -> int:
    """Number of values below the root."""
    return sum(1 for _ in iter_values(tree))


def max_depth(tree: FieldValue) -> int:
    """Nesting depth below the root (a flat composite of scalars is 1)."""
    deepest = 0
    stack: list[tuple[int, FieldValue]] = [(0, tree)]
    while stack:
        depth, value = stack.pop()
        deepest = max(deepest, depth)
        if isinstance(value, Composite):
            stack.extend((depth + 1, child) for child in value.fields.values())
        elif isinstance(value, ListValue):
            stack.extend((depth + 1, item) for item in value.items)
    return deepest
