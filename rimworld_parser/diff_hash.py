"""Content hashing for dataset entries.

Two runs over the same definitions must produce the same hash per entry,
so only the structural part of an entry is hashed: its identity, resolved
fields, tags, and stats. Location and edge lists are left out.
"""
import hashlib
import json
from typing import Any, Dict


class DiffHashService:
    """Service for generating diff hashes of dataset entries."""

    EXCLUDED_FIELDS = {
        'diff_hash', 'file_path', 'raw_xml', 'generated_at',
        'references_in', 'references_out', 'extension',
    }

    @staticmethod
    def generate_hash(data: Dict[str, Any]) -> str:
        """Generate SHA-512 hash for data."""
        normalized = DiffHashService._normalize_data(data)
        json_str = json.dumps(normalized, sort_keys=True, separators=(',', ':'), ensure_ascii=False)
        return hashlib.sha512(json_str.encode('utf-8')).hexdigest()

    @staticmethod
    def _normalize_data(data: Any) -> Any:
        # Top level only: resolved fields may legitimately be named like an excluded key
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if k not in DiffHashService.EXCLUDED_FIELDS}
        return data
