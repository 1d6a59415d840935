"""Tests for DefinitionRegistry."""

import pytest

from rimworld_parser.definition_registry import DefinitionRegistry
from rimworld_parser.domain.enums import DiagnosticKind, Severity
from rimworld_parser.domain.errors import DuplicateDefinitionNameError
from rimworld_parser.domain.models import DefinitionConfig
from tests.helpers import build_registry, parse_documents

ABSTRACT_BASE = '<Defs><ThingDef Name="Base" Abstract="True"><label>{}</label></ThingDef></Defs>'


class TestDefinitionRegistry:
    """Tests for aggregation and lookup."""

    def test_aggregates_all_definitions(self, sample_registry):
        assert len(sample_registry) == 7
        assert 'Gun_Revolver' in sample_registry
        assert sample_registry.get('Steel').source_path == 'Core/Defs/Items.xml'

    def test_stable_order_by_source_path(self):
        registry = build_registry(
            ('b.xml', '<Defs><ThingDef><defName>B</defName></ThingDef></Defs>'),
            ('a.xml', '<Defs><ThingDef><defName>A1</defName></ThingDef><ThingDef><defName>A2</defName></ThingDef></Defs>'),
        )
        assert [r.name for r in registry.records()] == ['A1', 'A2', 'B']
        assert [r.source_path for r in registry.records()] == ['a.xml', 'a.xml', 'b.xml']

    def test_find_parent_by_name_attribute(self, sample_registry):
        parent = sample_registry.find_parent('BaseThing')
        assert parent is not None
        assert parent.is_abstract

    def test_find_parent_by_inheritance_index(self):
        registry = build_registry(
            ('a.xml', '<Defs><ThingDef Name="BaseGun"><defName>RealGun</defName></ThingDef></Defs>'),
        )
        assert registry.find_parent('BaseGun').name == 'RealGun'
        assert registry.find_parent('RealGun').name == 'RealGun'
        assert registry.find_parent('Nope') is None

    @pytest.mark.parametrize('paths', [('a.xml', 'b.xml'), ('b.xml', 'a.xml')])
    def test_name_attribute_matching_other_def_name_warns(self, paths):
        registry = build_registry(
            (paths[0], '<Defs><ThingDef Name="Bar"><defName>Foo</defName></ThingDef></Defs>'),
            (paths[1], '<Defs><ThingDef><defName>Bar</defName></ThingDef></Defs>'),
        )
        assert registry.find_parent('Bar').name == 'Foo'
        assert registry.get('Bar').name == 'Bar'
        assert len(registry.diagnostics) == 1
        diagnostic = registry.diagnostics[0]
        assert diagnostic.kind == DiagnosticKind.AMBIGUOUS_PARENT_NAME
        assert diagnostic.severity == Severity.WARNING
        assert diagnostic.definitions == ('Foo', 'Bar')

    def test_name_attribute_equal_to_own_def_name_is_quiet(self):
        registry = build_registry(
            ('a.xml', '<Defs><ThingDef Name="Steel"><defName>Steel</defName></ThingDef></Defs>'),
        )
        assert registry.diagnostics == []

    def test_non_container_root_ignored(self):
        registry = build_registry(
            ('a.xml', '<Defs><ThingDef><defName>A</defName></ThingDef></Defs>'),
            ('about.xml', '<ModMetaData><name>Mod</name></ModMetaData>'),
        )
        assert len(registry) == 1

    def test_frozen_after_aggregate(self, sample_registry):
        root = parse_documents(('c.xml', '<Defs><ThingDef><defName>C</defName></ThingDef></Defs>'))[0]
        with pytest.raises(RuntimeError):
            sample_registry.add_document(root)


class TestDuplicateNames:
    """Tests for name collisions."""

    def test_duplicate_across_files_names_both_paths(self):
        xml = '<Defs><ThingDef><defName>Steel</defName></ThingDef></Defs>'
        with pytest.raises(DuplicateDefinitionNameError) as exc_info:
            build_registry(('Mods/B/Defs.xml', xml), ('Core/A/Defs.xml', xml))
        error = exc_info.value
        assert error.name == 'Steel'
        assert error.source_paths == ('Core/A/Defs.xml', 'Mods/B/Defs.xml')
        assert 'Core/A/Defs.xml' in str(error) and 'Mods/B/Defs.xml' in str(error)
        assert [d.kind for d in error.diagnostics] == [DiagnosticKind.DUPLICATE_DEFINITION_NAME]

    def test_duplicate_within_one_file(self):
        xml = '<Defs><ThingDef><defName>X</defName></ThingDef><RecipeDef><defName>X</defName></RecipeDef></Defs>'
        with pytest.raises(DuplicateDefinitionNameError):
            build_registry(('a.xml', xml))

    def test_inheritance_name_collision(self):
        with pytest.raises(DuplicateDefinitionNameError) as exc_info:
            build_registry(
                ('a.xml', ABSTRACT_BASE.format('a')),
                ('b.xml', '<Defs><ThingDef Name="Base"><defName>Other</defName></ThingDef></Defs>'),
            )
        assert exc_info.value.name == 'Base'

    def test_abstract_pair_rejected_by_default(self):
        with pytest.raises(DuplicateDefinitionNameError):
            build_registry(('a.xml', ABSTRACT_BASE.format('a')), ('b.xml', ABSTRACT_BASE.format('b')))

    def test_abstract_pair_allowed_when_configured(self):
        config = DefinitionConfig(allow_abstract_name_pairs=True)
        registry = build_registry(
            ('a.xml', ABSTRACT_BASE.format('a')),
            ('b.xml', ABSTRACT_BASE.format('b')),
            config=config,
        )
        assert registry.find_parent('Base').source_path == 'b.xml'
        assert len(registry.diagnostics) == 1
        assert registry.diagnostics[0].kind == DiagnosticKind.SHADOWED_ABSTRACT_DEFINITION
        assert registry.diagnostics[0].severity == Severity.WARNING

    def test_third_abstract_still_duplicate(self):
        config = DefinitionConfig(allow_abstract_name_pairs=True)
        with pytest.raises(DuplicateDefinitionNameError):
            build_registry(
                ('a.xml', ABSTRACT_BASE.format('a')),
                ('b.xml', ABSTRACT_BASE.format('b')),
                ('c.xml', ABSTRACT_BASE.format('c')),
                config=config,
            )

    def test_abstract_and_concrete_pair_is_duplicate(self):
        config = DefinitionConfig(allow_abstract_name_pairs=True)
        with pytest.raises(DuplicateDefinitionNameError):
            build_registry(
                ('a.xml', ABSTRACT_BASE.format('a')),
                ('b.xml', '<Defs><ThingDef Name="Base"><label>b</label></ThingDef></Defs>'),
                config=config,
            )

    def test_registry_can_be_built_directly(self):
        registry = DefinitionRegistry()
        root = parse_documents(('a.xml', '<Defs><ThingDef><defName>A</defName></ThingDef></Defs>'))[0]
        assert registry.add_document(root) == 1
        registry.freeze()
        assert registry.get('A').def_type == 'ThingDef'
