"""Dataset output.

Writes the dataset and diagnostics to an output directory.

Output structure:
    output_dir/
    ├── dataset.json.zstd   (or dataset.json when compression is off)
    └── diagnostics.json
"""

import json
import os
from typing import Any

import zstandard

from rimworld_parser.domain.constants import (
    COMPRESSED_DATASET_FILENAME,
    DATASET_FILENAME,
    DIAGNOSTICS_FILENAME,
)
from rimworld_parser.domain.models import Diagnostic


class DatasetWriter:
    """Writes the dataset, zstd-compressed by default.

    Args:
        output_dir: Root directory for output files.
        pretty: Whether to pretty-print JSON.
        compress: Write ``dataset.json.zstd`` instead of ``dataset.json``.
        compression_level: zstd level (1-22).
    """

    def __init__(
        self,
        output_dir: str,
        pretty: bool = False,
        compress: bool = True,
        compression_level: int = 19,
    ) -> None:
        self._output_dir = output_dir
        self._indent = 2 if pretty else None
        self._compress = compress
        self._level = compression_level

    def write_dataset(self, dataset: dict[str, Any]) -> str:
        """Write the dataset and return its path."""
        os.makedirs(self._output_dir, exist_ok=True)
        payload = json.dumps(dataset, indent=self._indent, ensure_ascii=False, default=str).encode('utf-8')

        if self._compress:
            path = os.path.join(self._output_dir, COMPRESSED_DATASET_FILENAME)
            payload = zstandard.ZstdCompressor(level=self._level).compress(payload)
        else:
            path = os.path.join(self._output_dir, DATASET_FILENAME)

        with open(path, 'wb') as f:
            f.write(payload)
        return path

    def write_diagnostics(self, diagnostics: list[Diagnostic]) -> str:
        """Write every diagnostic, even when there are none."""
        os.makedirs(self._output_dir, exist_ok=True)
        path = os.path.join(self._output_dir, DIAGNOSTICS_FILENAME)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump([d.to_dict() for d in diagnostics], f, indent=self._indent, ensure_ascii=False)
        return path


def load_dataset(path: str) -> dict[str, Any]:
    """Read a dataset written by DatasetWriter, compressed or not."""
    with open(path, 'rb') as f:
        payload = f.read()
    if path.endswith('.zstd'):
        payload = zstandard.ZstdDecompressor().decompress(payload)
    return json.loads(payload.decode('utf-8'))
