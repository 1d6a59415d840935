"""Definition registry: name → DefinitionRecord for every parsed document."""

import logging
from typing import Iterable, Iterator

from rimworld_parser.domain.enums import DiagnosticKind, Severity
from rimworld_parser.domain.errors import DuplicateDefinitionNameError
from rimworld_parser.domain.models import DefinitionConfig, DefinitionRecord, Diagnostic, RawNode
from rimworld_parser.parsers.def_parser import DefParser

logger = logging.getLogger(__name__)


class DefinitionRegistry:
    """Write-once collection of definition records keyed by unique name.

    Documents are aggregated in stable source-path order so duplicate
    detection does not depend on the order files were parsed in. Besides
    the name index, the registry keeps an inheritance index from the
    ``Name`` attribute to the record carrying it, which is what children
    point at with ``ParentName``.

    Args:
        config: Tag and attribute names plus the abstract-pair policy.
    """

    def __init__(self, config: DefinitionConfig | None = None) -> None:
        self.config = config or DefinitionConfig()
        self.diagnostics: list[Diagnostic] = []
        self._parser = DefParser(self.config)
        self._records: dict[str, DefinitionRecord] = {}
        self._inheritance_index: dict[str, str] = {}
        self._shadowed: set[str] = set()
        self._frozen = False

    def aggregate(self, documents: Iterable[RawNode]) -> 'DefinitionRegistry':
        """Register every definition in ``documents`` and freeze the registry.

        Raises:
            DuplicateDefinitionNameError: If two records share a name.
        """
        for root in sorted(documents, key=lambda node: node.source_path):
            self.add_document(root)
        self.freeze()
        return self

    def add_document(self, root: RawNode) -> int:
        """Register the definitions under one document root.

        Returns:
            Number of definitions registered from this document.
        """
        if self._frozen:
            raise RuntimeError("Definition registry is frozen")
        if root.tag not in self.config.container_tags:
            logger.debug("Skipping %s: root <%s> is not a definition container", root.source_path, root.tag)
            return 0

        count = 0
        for position, node in enumerate(root.elements()):
            self._register(self._parser.parse(node, position, self.diagnostics))
            count += 1
        return count

    def freeze(self) -> None:
        self._frozen = True

    # ── Lookup ───────────────────────────────────────────────────────────

    def get(self, name: str) -> DefinitionRecord | None:
        return self._records.get(name)

    def find_parent(self, parent_name: str) -> DefinitionRecord | None:
        """Look up a parent by inheritance name first, then by record name."""
        record_name = self._inheritance_index.get(parent_name, parent_name)
        return self._records.get(record_name)

    def records(self) -> Iterator[DefinitionRecord]:
        yield from self._records.values()

    def __contains__(self, name: object) -> bool:
        return name in self._records

    def __len__(self) -> int:
        return len(self._records)

    # ── Registration ─────────────────────────────────────────────────────

    def _register(self, record: DefinitionRecord) -> None:
        existing = self._records.get(record.name)
        if existing is not None:
            self._resolve_collision(record.name, existing, record)
        self._records[record.name] = record

        if record.inheritance_name:
            owner = self._inheritance_index.get(record.inheritance_name)
            if owner is not None and owner != record.name:
                self._resolve_collision(record.inheritance_name, self._records[owner], record)
                del self._records[owner]
            self._inheritance_index[record.inheritance_name] = record.name

        self._check_ambiguous_parent_name(record)

    def _check_ambiguous_parent_name(self, record: DefinitionRecord) -> None:
        """Warn when a ``Name`` attribute equals another record's defName."""
        if record.inheritance_name and record.inheritance_name != record.name:
            other = self._records.get(record.inheritance_name)
            if other is not None:
                self._warn_ambiguous(record.inheritance_name, record, other)
        owner = self._inheritance_index.get(record.name)
        if owner is not None and owner != record.name:
            self._warn_ambiguous(record.name, self._records[owner], record)

    def _warn_ambiguous(self, name: str, named: DefinitionRecord, other: DefinitionRecord) -> None:
        self.diagnostics.append(Diagnostic(
            Severity.WARNING,
            DiagnosticKind.AMBIGUOUS_PARENT_NAME,
            f"'{name}' is the Name of '{named.name}' and the defName of '{other.name}'; "
            f"ParentName resolves to '{named.name}', references resolve to '{other.name}'",
            other.source_path,
            (named.name, other.name),
        ))
        logger.warning("Name '%s' of '%s' shadows a defName for inheritance", name, named.name)

    def _resolve_collision(self, name: str, existing: DefinitionRecord, record: DefinitionRecord) -> None:
        """Allow one abstract/abstract pair when configured; anything else is fatal."""
        if (
            self.config.allow_abstract_name_pairs
            and existing.is_abstract
            and record.is_abstract
            and name not in self._shadowed
        ):
            self._shadowed.add(name)
            self.diagnostics.append(Diagnostic(
                Severity.WARNING,
                DiagnosticKind.SHADOWED_ABSTRACT_DEFINITION,
                f"Abstract definition '{name}' in {record.source_path} shadows the one in {existing.source_path}",
                record.source_path,
                (name,),
            ))
            logger.warning("Abstract definition '%s' redeclared in %s", name, record.source_path)
            return

        paths = (existing.source_path, record.source_path)
        self.diagnostics.append(Diagnostic(
            Severity.ERROR,
            DiagnosticKind.DUPLICATE_DEFINITION_NAME,
            f"Definition name '{name}' declared in {paths[0]} and {paths[1]}",
            record.source_path,
            (name,),
        ))
        raise DuplicateDefinitionNameError(name, paths, self.diagnostics)
