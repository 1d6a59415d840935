"""Reference linking between resolved definitions.

Scans resolved field trees for scalar values that name another definition
and builds the outbound edge list per record, then derives the inbound
lists as the exact transpose of all outbound edges in a single pass.

A scalar is a candidate only when its field name matches one of the
configured glob patterns (``*Def``, ``researchPrerequisites``, ...), which
keeps coincidental string matches out: a label that happens to read
"Steel" is not a reference. With ``match_all_fields`` every scalar and
every composite key is a candidate, trading precision for recall.

Three kinds of edges are produced:
  - field:  scalar value under a reference field ('comps[0].hediffDef')
  - key:    composite key under a keyed field ('costList.Steel')
  - parent: the record's resolved parent ('@ParentName')
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from fnmatch import fnmatchcase

from rimworld_parser.definition_registry import DefinitionRegistry
from rimworld_parser.domain.constants import PARENT_EDGE_PATH
from rimworld_parser.domain.enums import DiagnosticKind, EdgeKind, Severity
from rimworld_parser.domain.field_values import Composite, Scalar
from rimworld_parser.domain.field_walker import collect_attribute, iter_values, join_path
from rimworld_parser.domain.models import DefinitionConfig, DefinitionRecord, Diagnostic, ReferenceEdge

logger = logging.getLogger(__name__)


@dataclass
class LinkReport:
    """Edges and code references for every linked record."""

    outbound: dict[str, tuple[ReferenceEdge, ...]] = field(default_factory=dict)
    inbound: dict[str, tuple[ReferenceEdge, ...]] = field(default_factory=dict)
    code_references: dict[str, list[str]] = field(default_factory=dict)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def edge_count(self) -> int:
        return sum(len(edges) for edges in self.outbound.values())


@dataclass
class _ScanResult:
    edges: list[ReferenceEdge]
    code_references: list[str]
    diagnostics: list[Diagnostic]


class ReferenceLinker:
    """Builds the reference graph over resolved records.

    Args:
        registry: Frozen registry; every name in it (abstract or not) is a
            potential target.
        excluded: Names dropped during resolution, with the reason.
        config: Reference field patterns, keyed fields, and worker count.
    """

    def __init__(
        self,
        registry: DefinitionRegistry,
        excluded: dict[str, DiagnosticKind] | None = None,
        config: DefinitionConfig | None = None,
    ) -> None:
        self._registry = registry
        self._excluded = excluded or {}
        self.config = config or registry.config
        self._field_matches: dict[str, bool] = {}

    def link(self, records: list[DefinitionRecord]) -> LinkReport:
        """Scan ``records`` and build outbound and inbound edge lists.

        Records are scanned independently (concurrently when more than one
        worker is configured); the inbound index is computed only after
        every scan has finished.
        """
        if self.config.workers > 1 and len(records) > 1:
            with ThreadPoolExecutor(max_workers=self.config.workers) as executor:
                results = list(executor.map(self._scan, records))
        else:
            results = [self._scan(r) for r in records]

        report = LinkReport()
        for record, result in zip(records, results):
            report.outbound[record.name] = tuple(result.edges)
            report.code_references[record.name] = result.code_references
            report.diagnostics.extend(result.diagnostics)

        report.inbound = self.transpose(report.outbound)
        logger.info("Linked %d references across %d definitions", report.edge_count, len(records))
        return report

    @staticmethod
    def transpose(outbound: dict[str, tuple[ReferenceEdge, ...]]) -> dict[str, tuple[ReferenceEdge, ...]]:
        """Inbound edges per target, in order of first discovery."""
        inbound: dict[str, list[ReferenceEdge]] = {name: [] for name in outbound}
        for edges in outbound.values():
            for edge in edges:
                inbound.setdefault(edge.target, []).append(edge)
        return {name: tuple(edges) for name, edges in inbound.items()}

    # ── Forward Scan ─────────────────────────────────────────────────────

    def _scan(self, record: DefinitionRecord) -> _ScanResult:
        result = _ScanResult([], [], [])
        dangling: set[str] = set()
        tree = record.resolved

        if record.parent_name:
            parent = self._registry.find_parent(record.parent_name)
            if parent is not None:
                self._add(record, parent.name, PARENT_EDGE_PATH, EdgeKind.PARENT, result, dangling)

        for path, name, value in iter_values(tree):
            if isinstance(value, Scalar):
                if path != self.config.name_field and self._is_reference_field(name):
                    self._add(record, value.value.strip(), path, EdgeKind.FIELD, result, dangling)
            elif isinstance(value, Composite) and self._is_key_reference_field(name):
                for key in value.fields:
                    self._add(record, key, join_path(path, key), EdgeKind.KEY, result, dangling)

        result.code_references = sorted(set(collect_attribute(tree, self.config.class_attribute)))
        return result

    def _add(
        self,
        record: DefinitionRecord,
        target_name: str,
        path: str,
        kind: EdgeKind,
        result: _ScanResult,
        dangling: set[str],
    ) -> None:
        target = self._registry.get(target_name)
        if target is None or target.name == record.name:
            return

        if target.name in self._excluded:
            if target.name not in dangling:
                dangling.add(target.name)
                result.diagnostics.append(Diagnostic(
                    Severity.INFO,
                    DiagnosticKind.DANGLING_REFERENCE_TO_EXCLUDED_DEFINITION,
                    f"'{record.name}' references '{target.name}' at {path}, "
                    f"which was excluded ({self._excluded[target.name].value})",
                    record.source_path,
                    (record.name, target.name),
                ))
            return

        result.edges.append(ReferenceEdge(record.name, target.name, path, kind, target.is_abstract))

    # ── Field Matching ───────────────────────────────────────────────────

    def _is_reference_field(self, name: str | None) -> bool:
        if self.config.match_all_fields:
            return True
        if name is None:
            return False
        matched = self._field_matches.get(name)
        if matched is None:
            # Concurrent scans may both fill this entry with the same value
            matched = self._field_matches[name] = self._match_field(name)
        return matched

    def _is_key_reference_field(self, name: str | None) -> bool:
        return self.config.match_all_fields or name in self.config.key_reference_fields

    def _match_field(self, name: str) -> bool:
        return any(fnmatchcase(name, pattern) for pattern in self.config.reference_field_patterns)
