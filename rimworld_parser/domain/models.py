"""Shared data models used across parser modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Union
from xml.sax.saxutils import escape, quoteattr

from rimworld_parser.domain import constants
from rimworld_parser.domain.enums import DiagnosticKind, EdgeKind, Severity
from rimworld_parser.domain.field_values import Composite


@dataclass(frozen=True)
class SourceFile:
    """One input document as handed over by file discovery."""

    path: str
    content: bytes


@dataclass(frozen=True)
class RawNode:
    """A parsed XML element.

    ``children`` holds nested nodes and text runs in document order. A
    self-closing element has no children; ``<a></a>`` has a single empty
    text child.
    """

    tag: str
    attributes: dict[str, str] = field(default_factory=dict)
    children: tuple[Union[RawNode, str], ...] = ()
    source_path: str = ''

    def elements(self) -> Iterator[RawNode]:
        """Iterate element children, skipping text runs."""
        for child in self.children:
            if isinstance(child, RawNode):
                yield child

    @property
    def text(self) -> str | None:
        """Concatenated text children, or None if there are none."""
        runs = [child for child in self.children if isinstance(child, str)]
        return ''.join(runs) if runs else None

    def to_xml(self, indent: int = 0) -> str:
        """Render the node back to XML, two spaces per nesting level."""
        pad = '  ' * indent
        attrs = ''.join(f' {k}={quoteattr(v)}' for k, v in self.attributes.items())
        if not self.children:
            return f'{pad}<{self.tag}{attrs} />\n'
        if all(isinstance(child, str) for child in self.children):
            return f'{pad}<{self.tag}{attrs}>{escape(self.text or "")}</{self.tag}>\n'

        parts = [f'{pad}<{self.tag}{attrs}>\n']
        for child in self.children:
            if isinstance(child, RawNode):
                parts.append(child.to_xml(indent + 1))
            else:
                parts.append(f'{pad}  {escape(child)}\n')
        parts.append(f'{pad}</{self.tag}>\n')
        return ''.join(parts)


@dataclass
class DefinitionRecord:
    """One game definition.

    The raw field tree is built at registry time; ``resolved`` is filled in
    exactly once by the inheritance resolver.
    """

    name: str
    def_type: str
    fields: Composite
    raw: RawNode
    source_path: str
    parent_name: str | None = None
    inheritance_name: str | None = None
    is_abstract: bool = False
    resolved: Composite | None = None

    def set_resolved(self, tree: Composite) -> None:
        if self.resolved is not None:
            raise RuntimeError(f"Definition '{self.name}' is already resolved")
        self.resolved = tree


@dataclass(frozen=True)
class ReferenceEdge:
    """A directed link from one definition to another it names."""

    source: str
    target: str
    path: str
    kind: EdgeKind = EdgeKind.FIELD
    target_is_abstract: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            'source': self.source,
            'target': self.target,
            'path': self.path,
            'kind': self.kind.value,
            'target_is_abstract': self.target_is_abstract,
        }


@dataclass(frozen=True)
class Diagnostic:
    """A per-file or per-record problem surfaced alongside the graph."""

    severity: Severity
    kind: DiagnosticKind
    message: str
    source_path: str | None = None
    definitions: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            'severity': self.severity.value,
            'kind': self.kind.value,
            'message': self.message,
            'source_path': self.source_path,
            'definitions': list(self.definitions),
        }


@dataclass(frozen=True)
class GraphEntry:
    """A resolved record with its outbound and inbound edges."""

    record: DefinitionRecord
    outbound: tuple[ReferenceEdge, ...] = ()
    inbound: tuple[ReferenceEdge, ...] = ()
    code_references: tuple[str, ...] = ()


class DefinitionGraph:
    """Resolved, cross-linked definitions addressable by unique name.

    Abstract records are present (flagged on the record) so base classes
    can be documented; records excluded during resolution are absent.
    """

    def __init__(self, entries: dict[str, GraphEntry]) -> None:
        self._entries = entries

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __getitem__(self, name: str) -> GraphEntry:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def entries(self) -> Iterator[GraphEntry]:
        yield from self._entries.values()

    def outbound(self, name: str) -> tuple[ReferenceEdge, ...]:
        entry = self._entries.get(name)
        return entry.outbound if entry else ()

    def inbound(self, name: str) -> tuple[ReferenceEdge, ...]:
        entry = self._entries.get(name)
        return entry.inbound if entry else ()

    def non_abstract_names(self) -> list[str]:
        return [name for name, entry in self._entries.items() if not entry.record.is_abstract]


@dataclass
class DefinitionConfig:
    """Options controlling registry aggregation, resolution, and linking."""

    container_tags: frozenset[str] = constants.CONTAINER_TAGS
    name_field: str = constants.NAME_FIELD
    name_attribute: str = constants.NAME_ATTRIBUTE
    parent_attribute: str = constants.PARENT_ATTRIBUTE
    abstract_attribute: str = constants.ABSTRACT_ATTRIBUTE
    inherit_attribute: str = constants.INHERIT_ATTRIBUTE
    class_attribute: str = constants.CLASS_ATTRIBUTE
    reference_field_patterns: tuple[str, ...] = constants.REFERENCE_FIELD_PATTERNS
    key_reference_fields: tuple[str, ...] = constants.KEY_REFERENCE_FIELDS
    match_all_fields: bool = False
    allow_abstract_name_pairs: bool = False
    max_inheritance_depth: int = constants.MAX_INHERITANCE_DEPTH
    max_element_depth: int = constants.MAX_ELEMENT_DEPTH
    workers: int = 4


@dataclass
class DumpOptions:
    """Options controlling the dataset output."""

    pretty: bool = False
    compress: bool = True
    compression_level: int = 19
    include_raw_xml: bool = True
    config: DefinitionConfig = field(default_factory=DefinitionConfig)


@dataclass
class DumpResult:
    """Result summary of a dump operation."""

    total_files: int
    definitions: int
    excluded: int
    edges: int
    diagnostics_count: int
    output_path: str
