"""Exceptions raised by the definition pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rimworld_parser.domain.models import Diagnostic


class DefinitionError(Exception):
    """Base class for definition pipeline errors."""
    pass


class MalformedXmlError(DefinitionError):
    """A source document is not well-formed XML.

    Args:
        source_path: Path of the offending document.
        byte_offset: Offset into the document bytes where parsing stopped.
        cause: Human-readable reason (e.g. 'mismatched tag').
    """

    def __init__(self, source_path: str, byte_offset: int, cause: str) -> None:
        self.source_path = source_path
        self.byte_offset = byte_offset
        self.cause = cause
        super().__init__(f"{source_path}: {cause} at byte {byte_offset}")


class DefinitionPipelineError(DefinitionError):
    """A run-fatal error; carries every diagnostic collected before the abort."""

    def __init__(self, message: str, diagnostics: list[Diagnostic] | None = None) -> None:
        self.diagnostics = list(diagnostics or [])
        super().__init__(message)


class DuplicateDefinitionNameError(DefinitionPipelineError):
    """Two records claim the same name."""

    def __init__(self, name: str, source_paths: tuple[str, str], diagnostics: list[Diagnostic] | None = None) -> None:
        self.name = name
        self.source_paths = source_paths
        super().__init__(
            f"Duplicate definition name '{name}' in {source_paths[0]} and {source_paths[1]}",
            diagnostics,
        )


class NoDefinitionsFoundError(DefinitionPipelineError):
    """The input contained no definitions at all."""
    pass
