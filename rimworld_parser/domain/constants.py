"""Shared constants and field configurations.

Centralizes the tag names, attribute names, and reference field patterns
that are shared across the registry, resolution, linking, and output modules.
"""

import re

# ── Definition Markup ───────────────────────────────────────────────────

CONTAINER_TAGS: frozenset[str] = frozenset({'Defs'})

NAME_FIELD = 'defName'
NAME_ATTRIBUTE = 'Name'
PARENT_ATTRIBUTE = 'ParentName'
ABSTRACT_ATTRIBUTE = 'Abstract'
INHERIT_ATTRIBUTE = 'Inherit'
CLASS_ATTRIBUTE = 'Class'

LIST_ITEM_TAG = 'li'

# Key under which stray text inside a composite element is kept
MIXED_TEXT_KEY = '#text'

# Path label used for inheritance edges
PARENT_EDGE_PATH = f'@{PARENT_ATTRIBUTE}'

MAX_INHERITANCE_DEPTH = 64

# Deepest element nesting accepted in a source document
MAX_ELEMENT_DEPTH = 100

# ── Reference Field Patterns ────────────────────────────────────────────

# Glob patterns matched against the field name that owns a scalar leaf.
REFERENCE_FIELD_PATTERNS: tuple[str, ...] = (
    '*Def',
    '*Defs',
    '*Prerequisite',
    '*Prerequisites',
    'parent',
    'recipes',
    'recipeUsers',
    'thingCategories',
    'stuffCategories',
    'categories',
    'disallowedCategories',
    'defaultStuff',
    'workSkill',
    'workType',
    'requiredSkill',
)

# Composite fields whose keys (not values) name other definitions,
# e.g. <costList><Steel>50</Steel></costList>
KEY_REFERENCE_FIELDS: tuple[str, ...] = (
    'costList',
    'statBases',
    'statOffsets',
    'statFactors',
    'equippedStatOffsets',
)

# ── Output ──────────────────────────────────────────────────────────────

# Top-level field → tag shown in the dataset
FIELD_TAGS: tuple[tuple[str, str], ...] = (
    ('costList', 'Craftable'),
    ('researchPrerequisites', 'Research Required'),
    ('statBases', 'Has Stats'),
    ('comps', 'Has Components'),
    ('recipes', 'Has Recipes'),
)

# Checked in order; the first folder name found in the path wins
EXTENSION_MARKERS: tuple[tuple[str, str], ...] = (
    ('anomaly', 'Anomaly'),
    ('biotech', 'Biotech'),
    ('ideology', 'Ideology'),
    ('royalty', 'Royalty'),
    ('odyssey', 'Odyssey'),
    ('core', 'Core'),
)

COMPLEX_ELEMENT_COUNT = 20
COMPLEX_MAX_DEPTH = 4

CAMEL_BOUNDARY_RE = re.compile(r'(?<=[a-z])(?=[A-Z])')

DATASET_FILENAME = 'dataset.json'
COMPRESSED_DATASET_FILENAME = 'dataset.json.zstd'
DIAGNOSTICS_FILENAME = 'diagnostics.json'


def detect_extension(source_path: str) -> str:
    """Map a source path to the game extension (DLC) that ships it."""
    lowered = source_path.lower()
    for marker, extension in EXTENSION_MARKERS:
        if marker in lowered:
            return extension
    return 'Unknown'


def format_category_name(name: str) -> str:
    """Convert a camelCase def type into Title Case ('ThingDef' → 'Thing Def')."""
    if not name:
        return name
    return CAMEL_BOUNDARY_RE.sub(' ', name[0].upper() + name[1:])
