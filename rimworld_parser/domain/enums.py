"""Domain enums for the rimworld parser."""
from enum import Enum


class Severity(Enum):
    """Diagnostic severities."""
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"


class DiagnosticKind(Enum):
    """Diagnostic kinds reported alongside the definition graph."""
    MALFORMED_XML = "MalformedXml"
    DUPLICATE_DEFINITION_NAME = "DuplicateDefinitionName"
    NO_DEFINITIONS_FOUND = "NoDefinitionsFound"
    MISSING_PARENT = "MissingParent"
    CYCLIC_INHERITANCE = "CyclicInheritance"
    INHERITANCE_TOO_DEEP = "InheritanceTooDeep"
    DANGLING_REFERENCE_TO_EXCLUDED_DEFINITION = "DanglingReferenceToExcludedDefinition"
    DUPLICATE_FIELD = "DuplicateField"
    SHADOWED_ABSTRACT_DEFINITION = "ShadowedAbstractDefinition"
    AMBIGUOUS_PARENT_NAME = "AmbiguousParentName"


class EdgeKind(Enum):
    """How a reference edge was discovered."""
    FIELD = "field"
    KEY = "key"
    PARENT = "parent"
