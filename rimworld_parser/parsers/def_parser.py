"""
Parser for RimWorld definition elements.

Maps a definition element onto a DefinitionRecord and converts its child
elements into a typed field tree:

  - element whose children are all <li>  → ListValue
  - element with other child elements    → Composite
  - element with text or nothing inside  → Scalar

The merge-control attribute (``Inherit``) is consumed into the list
``append`` / composite ``replace`` flags. Text mixed in with child elements
is kept under ``#text``: as a field of a composite, as an attribute of a list.
"""

import logging
from pathlib import PurePosixPath

from rimworld_parser.domain.constants import LIST_ITEM_TAG, MIXED_TEXT_KEY
from rimworld_parser.domain.enums import DiagnosticKind, Severity
from rimworld_parser.domain.field_values import Composite, FieldValue, ListValue, Scalar
from rimworld_parser.domain.models import DefinitionConfig, DefinitionRecord, Diagnostic, RawNode
from rimworld_parser.parsers.base_parser import BaseParser

logger = logging.getLogger(__name__)


class DefParser(BaseParser):
    """
    Parser for definition elements (ThingDef, RecipeDef, ...).

    Args:
        config: Tag and attribute names to honor.
    """

    def __init__(self, config: DefinitionConfig | None = None) -> None:
        self.config = config or DefinitionConfig()
        self._identity_attributes = {
            self.config.name_attribute,
            self.config.parent_attribute,
            self.config.abstract_attribute,
        }

    def parse(self, node: RawNode, position: int, diagnostics: list[Diagnostic]) -> DefinitionRecord:
        """
        Parse a definition element.

        Returns:
            DefinitionRecord with the raw field tree populated and no
            resolved tree yet.
        """
        cfg = self.config
        inheritance_name = self._get_attribute(node, cfg.name_attribute)
        name = self._get_text(node, cfg.name_field) or inheritance_name
        if name is None:
            name = self._fallback_name(node, position)
            logger.debug("No %s on <%s> in %s; using '%s'", cfg.name_field, node.tag, node.source_path, name)
        abstract = (self._get_attribute(node, cfg.abstract_attribute) or '').lower() == 'true'

        attributes = {
            k: v for k, v in node.attributes.items()
            if k not in self._identity_attributes and k != cfg.inherit_attribute
        }
        fields = self._build_composite(node, attributes, False, name, diagnostics)

        return DefinitionRecord(
            name=name,
            def_type=node.tag,
            fields=fields,
            raw=node,
            source_path=node.source_path,
            parent_name=self._get_attribute(node, cfg.parent_attribute),
            inheritance_name=inheritance_name,
            is_abstract=abstract,
        )

    # ── Field Tree Building ─────────────────────────────────────────────

    def _build_value(self, node: RawNode, owner: str, diagnostics: list[Diagnostic]) -> FieldValue:
        attributes = dict(node.attributes)
        marker = (attributes.pop(self.config.inherit_attribute, None) or '').strip().lower()

        elements = list(node.elements())
        if not elements:
            return Scalar(node.text or '', attributes)

        if all(child.tag == LIST_ITEM_TAG for child in elements):
            items = tuple(self._build_value(child, owner, diagnostics) for child in elements)
            if node.text:
                # Lists have no field slot for stray text; keep it with the attributes
                attributes[MIXED_TEXT_KEY] = node.text
            return ListValue(items, attributes, append=marker == 'true')

        return self._build_composite(node, attributes, marker == 'false', owner, diagnostics)

    def _build_composite(
        self,
        node: RawNode,
        attributes: dict[str, str],
        replace: bool,
        owner: str,
        diagnostics: list[Diagnostic],
    ) -> Composite:
        fields: dict[str, FieldValue] = {}
        for child in node.elements():
            if child.tag in fields:
                diagnostics.append(Diagnostic(
                    Severity.WARNING,
                    DiagnosticKind.DUPLICATE_FIELD,
                    f"Field <{child.tag}> repeated in <{node.tag}> of '{owner}'; last one wins",
                    node.source_path,
                    (owner,),
                ))
                del fields[child.tag]
            fields[child.tag] = self._build_value(child, owner, diagnostics)
        if node.text:
            # Every text run, in document order; whitespace between elements is already gone
            fields[MIXED_TEXT_KEY] = Scalar(node.text)
        return Composite(fields, attributes, replace=replace)

    @staticmethod
    def _fallback_name(node: RawNode, position: int) -> str:
        stem = PurePosixPath(node.source_path).stem or 'unknown'
        return f"{stem}:{node.tag}:{position}"
