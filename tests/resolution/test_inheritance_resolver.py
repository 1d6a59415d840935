"""Tests for InheritanceResolver."""

from rimworld_parser.domain.enums import DiagnosticKind, Severity
from rimworld_parser.domain.models import DefinitionConfig
from rimworld_parser.resolution.inheritance_resolver import InheritanceResolver
from tests.helpers import CYCLE_XML, build_registry


def _resolve(*documents, config=None):
    registry = build_registry(*documents, config=config)
    return registry, InheritanceResolver(registry).resolve_all()


def _items(value):
    return [item.value for item in value.items]


class TestInheritanceResolver:
    """Tests for flattening parent chains."""

    def test_sample_revolver(self, sample_registry):
        report = InheritanceResolver(sample_registry).resolve_all()
        assert report.excluded == {}
        assert report.diagnostics == []

        revolver = sample_registry.get('Gun_Revolver').resolved
        assert revolver.get_text('category') == 'Item'
        assert revolver.get('statBases').get_text('Mass') == '1.4'
        assert revolver.get('statBases').get_text('MaxHitPoints') == '100'
        assert _items(revolver.get('thingCategories')) == ['Manufactured', 'Weapons']
        assert list(revolver.fields)[:4] == ['category', 'tradeability', 'statBases', 'thingCategories']

    def test_every_record_resolved_in_registry_order(self, sample_registry):
        report = InheritanceResolver(sample_registry).resolve_all()
        assert [r.name for r in report.resolved] == [r.name for r in sample_registry.records()]
        assert all(r.resolved is not None for r in report.resolved)

    def test_override_and_append(self):
        registry, _ = _resolve((
            'a.xml',
            '<Defs>'
            '<ThingDef Name="P" Abstract="True"><label>parent</label><tags><li>1</li><li>2</li></tags></ThingDef>'
            '<ThingDef ParentName="P"><defName>C</defName><label>child</label>'
            '<tags Inherit="True"><li>3</li></tags></ThingDef>'
            '</Defs>',
        ))
        child = registry.get('C').resolved
        assert child.get_text('label') == 'child'
        assert _items(child.get('tags')) == ['1', '2', '3']

    def test_grandchild_appends_to_flattened_list(self):
        registry, _ = _resolve((
            'a.xml',
            '<Defs>'
            '<ThingDef Name="G"><tags><li>1</li></tags></ThingDef>'
            '<ThingDef Name="P" ParentName="G"><tags Inherit="True"><li>2</li></tags></ThingDef>'
            '<ThingDef ParentName="P"><defName>C</defName><tags Inherit="True"><li>3</li></tags></ThingDef>'
            '</Defs>',
        ))
        assert _items(registry.get('C').resolved.get('tags')) == ['1', '2', '3']
        assert _items(registry.get('P').resolved.get('tags')) == ['1', '2']

    def test_child_defined_before_parent(self):
        registry, report = _resolve(
            ('a.xml', '<Defs><ThingDef ParentName="Base"><defName>C</defName></ThingDef></Defs>'),
            ('b.xml', '<Defs><ThingDef Name="Base"><label>base</label></ThingDef></Defs>'),
        )
        assert report.excluded == {}
        assert registry.get('C').resolved.get_text('label') == 'base'

    def test_unmodified_subtrees_shared(self, sample_registry):
        InheritanceResolver(sample_registry).resolve_all()
        base = sample_registry.get('BaseThing').resolved
        steel = sample_registry.get('Steel').resolved
        revolver = sample_registry.get('Gun_Revolver').resolved
        assert steel is sample_registry.get('Steel').fields
        assert revolver.get('category') is base.get('category')

    def test_root_markers_stripped(self):
        registry, _ = _resolve(('a.xml', '<Defs><ThingDef><defName>R</defName><tags Inherit="True"><li>1</li></tags></ThingDef></Defs>'))
        assert not registry.get('R').resolved.get('tags').append


class TestResolutionFailures:
    """Tests for excluded records."""

    def test_cycle_excludes_both_with_one_diagnostic(self):
        _, report = _resolve(('a.xml', CYCLE_XML))
        assert report.excluded == {
            'A': DiagnosticKind.CYCLIC_INHERITANCE,
            'B': DiagnosticKind.CYCLIC_INHERITANCE,
        }
        assert report.resolved == []
        assert len(report.diagnostics) == 1
        diagnostic = report.diagnostics[0]
        assert diagnostic.severity == Severity.ERROR
        assert set(diagnostic.definitions) == {'A', 'B'}
        assert 'A -> B -> A' in diagnostic.message

    def test_self_parent_is_cycle(self):
        _, report = _resolve(('a.xml', '<Defs><ThingDef Name="Loop" ParentName="Loop" /></Defs>'))
        assert report.excluded == {'Loop': DiagnosticKind.CYCLIC_INHERITANCE}

    def test_descendant_of_cycle_excluded(self):
        _, report = _resolve(
            ('a.xml', CYCLE_XML),
            ('b.xml', '<Defs><ThingDef ParentName="A"><defName>C</defName></ThingDef></Defs>'),
        )
        assert report.excluded['C'] == DiagnosticKind.CYCLIC_INHERITANCE
        diagnostic = next(d for d in report.diagnostics if 'C' in d.definitions)
        assert diagnostic.definitions == ('C', 'A')

    def test_cycle_entered_from_descendant(self):
        _, report = _resolve(
            ('a.xml', '<Defs><ThingDef ParentName="A"><defName>C</defName></ThingDef></Defs>'),
            ('b.xml', CYCLE_XML),
        )
        assert set(report.excluded) == {'A', 'B', 'C'}
        cycle_diagnostics = [d for d in report.diagnostics if set(d.definitions) == {'A', 'B'}]
        assert len(cycle_diagnostics) == 1

    def test_missing_parent(self):
        registry, report = _resolve((
            'a.xml',
            '<Defs>'
            '<ThingDef ParentName="Ghost"><defName>Orphan</defName></ThingDef>'
            '<ThingDef ParentName="Orphan"><defName>GrandOrphan</defName></ThingDef>'
            '<ThingDef><defName>Unrelated</defName></ThingDef>'
            '</Defs>',
        ))
        assert report.excluded == {
            'Orphan': DiagnosticKind.MISSING_PARENT,
            'GrandOrphan': DiagnosticKind.MISSING_PARENT,
        }
        orphan = next(d for d in report.diagnostics if d.definitions[0] == 'Orphan')
        assert orphan.definitions == ('Orphan', 'Ghost')
        assert [r.name for r in report.resolved] == ['Unrelated']
        assert registry.get('Orphan').resolved is None

    def test_depth_guard(self):
        config = DefinitionConfig(max_inheritance_depth=2)
        _, report = _resolve(
            (
                'a.xml',
                '<Defs>'
                '<ThingDef Name="R" />'
                '<ThingDef Name="C1" ParentName="R" />'
                '<ThingDef Name="C2" ParentName="C1" />'
                '<ThingDef Name="C3" ParentName="C2" />'
                '<ThingDef Name="C4" ParentName="C3" />'
                '</Defs>',
            ),
            config=config,
        )
        assert [r.name for r in report.resolved] == ['R', 'C1', 'C2']
        assert report.excluded == {
            'C3': DiagnosticKind.INHERITANCE_TOO_DEEP,
            'C4': DiagnosticKind.INHERITANCE_TOO_DEEP,
        }
