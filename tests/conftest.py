"""Shared test fixtures."""

import zipfile

import pytest

from rimworld_parser.domain.models import SourceFile
from tests.helpers import BASES_XML, ITEMS_XML, build_registry


# ── Fixtures ─────────────────────────────────────────────────────────────

@pytest.fixture
def sample_sources():
    """The sample def files as pipeline input."""
    return [
        SourceFile('Core/Defs/Bases.xml', BASES_XML.encode('utf-8')),
        SourceFile('Core/Defs/Items.xml', ITEMS_XML.encode('utf-8')),
    ]


@pytest.fixture
def sample_registry():
    return build_registry(('Core/Defs/Bases.xml', BASES_XML), ('Core/Defs/Items.xml', ITEMS_XML))


@pytest.fixture
def sample_install(tmp_path):
    """Create a minimal RimWorld install layout."""
    root = tmp_path / "RimWorld"
    defs = root / "Data" / "Core" / "Defs"
    defs.mkdir(parents=True)
    (defs / "Bases.xml").write_text(BASES_XML, encoding="utf-8")
    (defs / "Items.xml").write_text(ITEMS_XML, encoding="utf-8")
    (root / "Data" / "Core" / "Textures").mkdir()
    (root / "Data" / "Core" / "Textures" / "ignored.xml").write_text("<Defs/>", encoding="utf-8")
    (root / "Version.txt").write_text("1.5.4104 rev435\n", encoding="utf-8")
    return str(root)


@pytest.fixture
def sample_zip(tmp_path):
    """Create a ZIP of def files for integration tests."""
    zip_path = tmp_path / "defs.zip"
    with zipfile.ZipFile(zip_path, 'w') as zf:
        zf.writestr("Core/Defs/Bases.xml", BASES_XML)
        zf.writestr("Core/Defs/Items.xml", ITEMS_XML)
        zf.writestr("Core/Defs/readme.txt", "not a def file")
    return str(zip_path)
