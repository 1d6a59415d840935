"""Builds the viewer dataset from a resolved definition graph.

Output structure:
    {
      "categories": [{"name", "display_name", "count", "definitions": [...]}],
      "stats": {"total_defs", "total_categories", "total_files", "total_files_in_package",
                "package_name", "game_version", "generated_at"},
      "diagnostics": [...]
    }
"""

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any

from rimworld_parser.diff_hash import DiffHashService
from rimworld_parser.domain.constants import (
    COMPLEX_ELEMENT_COUNT,
    COMPLEX_MAX_DEPTH,
    FIELD_TAGS,
    detect_extension,
    format_category_name,
)
from rimworld_parser.domain.field_values import Composite
from rimworld_parser.domain.field_walker import count_values, max_depth, walk_field_paths
from rimworld_parser.domain.models import DefinitionGraph, Diagnostic, GraphEntry

logger = logging.getLogger(__name__)


class DatasetBuilder:
    """Turns graph entries into the flat, per-category dataset contract.

    Args:
        include_raw_xml: Whether each entry carries its source XML.
    """

    def __init__(self, include_raw_xml: bool = True) -> None:
        self.include_raw_xml = include_raw_xml

    def build(
        self,
        graph: DefinitionGraph,
        diagnostics: list[Diagnostic],
        info: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        info = info or {}
        by_type: dict[str, list[dict[str, Any]]] = defaultdict(list)
        for entry in graph.entries():
            by_type[entry.record.def_type].append(self.build_entry(entry))

        categories = []
        for def_type, definitions in by_type.items():
            definitions.sort(key=lambda d: d['def_name'])
            categories.append({
                'name': def_type,
                'display_name': format_category_name(def_type),
                'count': len(definitions),
                'definitions': definitions,
            })
        categories.sort(key=lambda c: c['display_name'])

        logger.info("Built dataset with %d definitions in %d categories", len(graph), len(categories))
        return {
            'categories': categories,
            'stats': {
                'total_defs': len(graph),
                'total_categories': len(categories),
                'total_files': info.get('total_files', 0),
                'total_files_in_package': info.get('total_files_in_package', 0),
                'package_name': info.get('package_name'),
                'game_version': info.get('game_version', 'Unknown'),
                'generated_at': datetime.now(timezone.utc).isoformat(),
            },
            'diagnostics': [d.to_dict() for d in diagnostics],
        }

    def build_entry(self, entry: GraphEntry) -> dict[str, Any]:
        """Build one definition entry, diff hash included."""
        record = entry.record
        tree = record.resolved if record.resolved is not None else record.fields

        data: dict[str, Any] = {
            'def_name': record.name,
            'def_type': record.def_type,
            'label': _first(walk_field_paths(tree, 'label')),
            'description': _first(walk_field_paths(tree, 'description')),
            'parent_name': record.parent_name,
            'is_abstract': record.is_abstract,
            'file_path': record.source_path,
            'extension': detect_extension(record.source_path),
            'tags': self._tags(entry, tree),
            'stats': self._stats(tree),
            'fields': tree.to_dict(),
            'references_out': [edge.to_dict() for edge in entry.outbound],
            'references_in': [edge.to_dict() for edge in entry.inbound],
            'code_references': list(entry.code_references),
        }
        if self.include_raw_xml:
            data['raw_xml'] = record.raw.to_xml()
        data['diff_hash'] = DiffHashService.generate_hash(data)
        return data

    @staticmethod
    def _tags(entry: GraphEntry, tree: Composite) -> list[str]:
        tags = []
        if entry.record.is_abstract:
            tags.append('Abstract')
        if entry.record.parent_name:
            tags.append('Inherits')
        tags.extend(tag for field_name, tag in FIELD_TAGS if field_name in tree.fields)
        return tags

    @staticmethod
    def _stats(tree: Composite) -> dict[str, Any] | None:
        if not tree.fields:
            return None
        element_count = count_values(tree)
        depth = max_depth(tree)
        return {
            'element_count': element_count,
            'max_depth': depth,
            'has_complex_structure': element_count > COMPLEX_ELEMENT_COUNT or depth > COMPLEX_MAX_DEPTH,
        }


def _first(values: list[str]) -> str | None:
    return values[0] if values else None
