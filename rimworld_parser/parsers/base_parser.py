"""Base class for definition element parsers."""

from abc import ABC, abstractmethod

from rimworld_parser.domain.models import DefinitionRecord, Diagnostic, RawNode


class BaseParser(ABC):
    """Turns one definition-bearing element into a DefinitionRecord."""

    @abstractmethod
    def parse(self, node: RawNode, position: int, diagnostics: list[Diagnostic]) -> DefinitionRecord:
        """Parse a definition element.

        Args:
            node: The element directly under a container tag.
            position: Index of the element among the definitions in its file.
            diagnostics: Sink for non-fatal problems found while parsing.
        """

    @staticmethod
    def _get_text(node: RawNode, tag: str) -> str | None:
        """Return the stripped text of the first child element named ``tag``."""
        for child in node.elements():
            if child.tag == tag:
                text = (child.text or '').strip()
                return text or None
        return None

    @staticmethod
    def _get_attribute(node: RawNode, name: str) -> str | None:
        value = node.attributes.get(name)
        if value is None:
            return None
        return value.strip() or None
