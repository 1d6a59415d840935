"""Sample def files and builders shared across tests."""

from rimworld_parser.definition_registry import DefinitionRegistry
from rimworld_parser.domain.models import DefinitionConfig
from rimworld_parser.raw_parser import RawParser


# ── Sample XML Content ───────────────────────────────────────────────────

BASES_XML = """\
<?xml version="1.0" encoding="utf-8"?>
<Defs>
  <ThingDef Name="BaseThing" Abstract="True">
    <category>Item</category>
    <tradeability>All</tradeability>
    <statBases>
      <MaxHitPoints>100</MaxHitPoints>
      <Mass>1</Mass>
    </statBases>
    <thingCategories>
      <li>Manufactured</li>
    </thingCategories>
  </ThingDef>
  <ThingCategoryDef>
    <defName>Manufactured</defName>
    <label>manufactured</label>
  </ThingCategoryDef>
  <StatDef>
    <defName>MaxHitPoints</defName>
    <label>max hit points</label>
  </StatDef>
  <StatDef>
    <defName>Mass</defName>
    <label>mass</label>
  </StatDef>
</Defs>
"""

ITEMS_XML = """\
<?xml version="1.0" encoding="utf-8"?>
<Defs>
  <ThingDef>
    <defName>Steel</defName>
    <label>steel</label>
    <description>A common metal.</description>
  </ThingDef>
  <ThingDef ParentName="BaseThing">
    <defName>Gun_Revolver</defName>
    <label>revolver</label>
    <description>An ancient pattern double-action revolver.</description>
    <statBases>
      <Mass>1.4</Mass>
    </statBases>
    <costList>
      <Steel>30</Steel>
    </costList>
    <thingCategories Inherit="True">
      <li>Weapons</li>
    </thingCategories>
    <comps>
      <li Class="CompProperties_Forbiddable" />
    </comps>
    <recipeMaker>
      <researchPrerequisite>Gunsmithing</researchPrerequisite>
    </recipeMaker>
  </ThingDef>
  <ResearchProjectDef>
    <defName>Gunsmithing</defName>
    <label>gunsmithing</label>
  </ResearchProjectDef>
</Defs>
"""

CYCLE_XML = """\
<Defs>
  <ThingDef Name="A" ParentName="B">
    <label>a</label>
  </ThingDef>
  <ThingDef Name="B" ParentName="A">
    <label>b</label>
  </ThingDef>
</Defs>
"""

MALFORMED_XML = """\
<Defs>
  <ThingDef>
    <defName>Broken</defName>
  </Thing>
</Defs>
"""


def parse_documents(*documents: tuple[str, str]):
    """Parse (path, xml) pairs into RawNode roots."""
    parser = RawParser()
    return [parser.parse(xml.encode('utf-8'), path) for path, xml in documents]


def build_registry(*documents: tuple[str, str], config: DefinitionConfig | None = None) -> DefinitionRegistry:
    """Aggregate (path, xml) pairs into a frozen registry."""
    return DefinitionRegistry(config or DefinitionConfig(workers=1)).aggregate(parse_documents(*documents))
