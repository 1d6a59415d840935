"""Definition pipeline: source bytes → resolved, cross-linked definition graph.

Stages:
  1. Raw parsing, one document per worker, no shared state
  2. Registry aggregation, single writer, stable source-path order
  3. Inheritance resolution
  4. Reference linking (forward scan, then transpose)

Per-file and per-record failures become diagnostics. The run itself fails
only on an ambiguous definition name or when no definitions exist at all;
the raised error carries every diagnostic collected up to that point.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable

from rimworld_parser.definition_registry import DefinitionRegistry
from rimworld_parser.domain.enums import DiagnosticKind, Severity
from rimworld_parser.domain.errors import DefinitionPipelineError, MalformedXmlError, NoDefinitionsFoundError
from rimworld_parser.domain.models import (
    DefinitionConfig,
    DefinitionGraph,
    Diagnostic,
    GraphEntry,
    RawNode,
    SourceFile,
)
from rimworld_parser.raw_parser import RawParser
from rimworld_parser.references.linker import ReferenceLinker
from rimworld_parser.resolution.inheritance_resolver import InheritanceResolver

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """The graph handed to packaging, plus everything needed to report on it."""

    graph: DefinitionGraph
    diagnostics: list[Diagnostic]
    excluded: dict[str, DiagnosticKind] = field(default_factory=dict)
    files_parsed: int = 0
    files_failed: int = 0

    @property
    def edge_count(self) -> int:
        return sum(len(entry.outbound) for entry in self.graph.entries())


class DefinitionPipeline:
    """Runs the definition resolution and cross-reference engine.

    Args:
        config: Registry, resolution, and linking options.
    """

    def __init__(self, config: DefinitionConfig | None = None) -> None:
        self.config = config or DefinitionConfig()
        self._parser = RawParser(self.config.max_element_depth)

    def run(self, sources: Iterable[SourceFile]) -> PipelineResult:
        """Build the definition graph from (path, bytes) sources.

        Raises:
            DuplicateDefinitionNameError: Two records share a name.
            NoDefinitionsFoundError: The sources held no definitions.
        """
        sources = list(sources)
        diagnostics: list[Diagnostic] = []

        documents = self._parse_all(sources, diagnostics)
        files_failed = len(sources) - len(documents)

        registry = DefinitionRegistry(self.config)
        try:
            registry.aggregate(documents)
        except DefinitionPipelineError as e:
            e.diagnostics = diagnostics + e.diagnostics
            raise
        diagnostics.extend(registry.diagnostics)

        if len(registry) == 0:
            message = f"No definitions found in {len(sources)} source file(s)"
            diagnostics.append(Diagnostic(Severity.ERROR, DiagnosticKind.NO_DEFINITIONS_FOUND, message))
            raise NoDefinitionsFoundError(message, diagnostics)
        logger.info("Registered %d definitions from %d files", len(registry), len(documents))

        resolution = InheritanceResolver(registry, self.config).resolve_all()
        diagnostics.extend(resolution.diagnostics)

        links = ReferenceLinker(registry, resolution.excluded, self.config).link(resolution.resolved)
        diagnostics.extend(links.diagnostics)

        graph = DefinitionGraph({
            record.name: GraphEntry(
                record=record,
                outbound=links.outbound[record.name],
                inbound=links.inbound[record.name],
                code_references=tuple(links.code_references[record.name]),
            )
            for record in resolution.resolved
        })
        return PipelineResult(
            graph=graph,
            diagnostics=diagnostics,
            excluded=resolution.excluded,
            files_parsed=len(documents),
            files_failed=files_failed,
        )

    # ── Parsing ──────────────────────────────────────────────────────────

    def _parse_all(self, sources: list[SourceFile], diagnostics: list[Diagnostic]) -> list[RawNode]:
        """Parse every source, turning malformed files into diagnostics."""
        if self.config.workers > 1 and len(sources) > 1:
            with ThreadPoolExecutor(max_workers=self.config.workers) as executor:
                outcomes = list(executor.map(self._parse_one, sources))
        else:
            outcomes = [self._parse_one(source) for source in sources]

        documents: list[RawNode] = []
        for outcome in outcomes:
            if isinstance(outcome, MalformedXmlError):
                diagnostics.append(Diagnostic(
                    Severity.ERROR,
                    DiagnosticKind.MALFORMED_XML,
                    f"{outcome.cause} at byte {outcome.byte_offset}",
                    outcome.source_path,
                ))
                logger.warning("Skipping malformed file %s", outcome)
            else:
                documents.append(outcome)
        return documents

    def _parse_one(self, source: SourceFile) -> RawNode | MalformedXmlError:
        try:
            return self._parser.parse(source.content, source.path)
        except MalformedXmlError as e:
            return e
