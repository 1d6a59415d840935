"""Inheritance resolution.

Flattens every record's parent chain into a resolved field tree, root
ancestor first. Chains are walked iteratively with an explicit path stack,
so cycle detection never depends on the call stack, and every record is
resolved at most once (already-resolved ancestors end the walk early).

Failures are per record: a missing parent, a cycle, or a chain deeper than
the configured limit excludes the affected records (and everything that
inherits from them) and is reported as a diagnostic.
"""

import logging
from dataclasses import dataclass, field

from rimworld_parser.definition_registry import DefinitionRegistry
from rimworld_parser.domain.enums import DiagnosticKind, Severity
from rimworld_parser.domain.models import DefinitionConfig, DefinitionRecord, Diagnostic
from rimworld_parser.resolution.field_merger import merge_fields, strip_markers

logger = logging.getLogger(__name__)


@dataclass
class ResolutionReport:
    """Outcome of resolving a registry."""

    resolved: list[DefinitionRecord] = field(default_factory=list)
    excluded: dict[str, DiagnosticKind] = field(default_factory=dict)
    diagnostics: list[Diagnostic] = field(default_factory=list)


class InheritanceResolver:
    """Resolves records against a frozen DefinitionRegistry.

    Args:
        registry: Aggregated definitions; used for parent lookup.
        config: Supplies the maximum inheritance depth.
    """

    def __init__(self, registry: DefinitionRegistry, config: DefinitionConfig | None = None) -> None:
        self._registry = registry
        self._max_depth = (config or registry.config).max_inheritance_depth
        self._depth: dict[str, int] = {}
        self._report = ResolutionReport()

    def resolve_all(self) -> ResolutionReport:
        """Resolve every record in registry order.

        Returns:
            Report listing resolved records (registry order), excluded
            names with the reason, and the diagnostics raised.
        """
        for record in self._registry.records():
            self.resolve(record)

        self._report.resolved = [
            r for r in self._registry.records() if r.resolved is not None
        ]
        logger.info(
            "Resolved %d definitions, excluded %d",
            len(self._report.resolved), len(self._report.excluded),
        )
        return self._report

    def resolve(self, record: DefinitionRecord) -> None:
        """Resolve one record and any unresolved ancestors."""
        if record.resolved is not None or record.name in self._report.excluded:
            return

        path = self._walk_chain(record)
        if path is None:
            return

        top = path[-1]
        if top.name in self._report.excluded:
            self._exclude_descendants(path[:-1], top, self._report.excluded[top.name])
            return

        if top.resolved is None:
            # Chain root: no parent at all
            top.set_resolved(strip_markers(top.fields))
            self._depth[top.name] = 0

        for i in range(len(path) - 2, -1, -1):
            child, parent = path[i], path[i + 1]
            depth = self._depth[parent.name] + 1
            if depth > self._max_depth:
                self._exclude(
                    child,
                    DiagnosticKind.INHERITANCE_TOO_DEEP,
                    f"Inheritance chain of '{child.name}' is deeper than {self._max_depth}",
                    (child.name,),
                )
                self._exclude_descendants(path[:i], child, DiagnosticKind.INHERITANCE_TOO_DEEP)
                return
            child.set_resolved(merge_fields(parent.resolved, child.fields))
            self._depth[child.name] = depth

    # ── Chain Walking ───────────────────────────────────────────────────

    def _walk_chain(self, record: DefinitionRecord) -> list[DefinitionRecord] | None:
        """Follow parent links until a resolved, excluded, or root record.

        Returns:
            The path from ``record`` up to that stopping record, or None
            when the walk hit a missing parent or a cycle (both already
            reported and excluded).
        """
        path = [record]
        on_path = {record.name: 0}
        current = record

        while current.resolved is None and current.name not in self._report.excluded:
            if current.parent_name is None:
                break

            parent = self._registry.find_parent(current.parent_name)
            if parent is None:
                self._exclude(
                    current,
                    DiagnosticKind.MISSING_PARENT,
                    f"Definition '{current.name}' names missing parent '{current.parent_name}'",
                    (current.name, current.parent_name),
                )
                self._exclude_descendants(path[:-1], current, DiagnosticKind.MISSING_PARENT)
                return None

            if parent.name in on_path:
                start = on_path[parent.name]
                self._exclude_cycle(path[start:])
                self._exclude_descendants(path[:start], path[start], DiagnosticKind.CYCLIC_INHERITANCE)
                return None

            on_path[parent.name] = len(path)
            path.append(parent)
            current = parent

        return path

    # ── Exclusion ───────────────────────────────────────────────────────

    def _exclude_cycle(self, cycle: list[DefinitionRecord]) -> None:
        names = tuple(r.name for r in cycle)
        chain = ' -> '.join(names + (names[0],))
        diagnostic = Diagnostic(
            Severity.ERROR,
            DiagnosticKind.CYCLIC_INHERITANCE,
            f"Cyclic inheritance: {chain}",
            cycle[0].source_path,
            names,
        )
        self._report.diagnostics.append(diagnostic)
        logger.warning(diagnostic.message)
        for r in cycle:
            self._report.excluded[r.name] = DiagnosticKind.CYCLIC_INHERITANCE

    def _exclude_descendants(
        self, descendants: list[DefinitionRecord], failed: DefinitionRecord, kind: DiagnosticKind,
    ) -> None:
        """Exclude records that inherit (directly or not) from an excluded one."""
        for r in reversed(descendants):
            self._exclude(
                r,
                kind,
                f"Definition '{r.name}' inherits from excluded definition '{failed.name}'",
                (r.name, failed.name),
            )

    def _exclude(self, record: DefinitionRecord, kind: DiagnosticKind, message: str, names: tuple) -> None:
        self._report.excluded[record.name] = kind
        self._report.diagnostics.append(Diagnostic(Severity.ERROR, kind, message, record.source_path, names))
        logger.warning(message)
