"""
Workspace to diagram conversion.

Converts the symbols and relationships reported by the semantic analyzer
into diagram nodes and edges.

Boundary rules:
- A symbol that is not a Definition/Usage, lacks its sub-kind, or has an
  unrecognized sub-kind produces no node. This is not an error.
- A relationship outside the fixed vocabulary is a defect upstream and
  raises UnknownRelationshipTypeError.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .diagram import Diagram, DiagramEdge, DiagramNode, placeholder_layout

logger = logging.getLogger(__name__)


class UnknownRelationshipTypeError(ValueError):
    """A relationship record whose type is outside the known vocabulary."""

    def __init__(self, relationship_type: Any, source: str = "", target: str = ""):
        self.relationship_type = relationship_type
        self.source = source
        self.target = target
        super().__init__(
            f"Unknown relationship type '{relationship_type}' ({source} -> {target})"
        )


SYMBOL_KINDS = ("Definition", "Usage", "Package", "Classifier", "Feature", "Alias")

RELATIONSHIP_TYPES = (
    "specialization",
    "redefinition",
    "subsetting",
    "typing",
    "reference_subsetting",
    "cross_subsetting",
    "satisfy",
    "perform",
    "exhibit",
    "include",
    "assert",
    "verify",
)

# Sub-kind -> symbol fields copied onto the node
DEFINITION_FIELDS: Dict[str, Tuple[str, ...]] = {
    "Part": ("features",),
    "Port": ("direction",),
    "Action": (),
    "State": (),
    "Item": (),
    "Attribute": ("data_type",),
    "Requirement": ("text",),
    "Concern": (),
    "Case": (),
    "AnalysisCase": (),
    "VerificationCase": (),
    "UseCase": (),
    "View": (),
    "Viewpoint": (),
    "Rendering": (),
    "Allocation": (),
    "Calculation": (),
    "Connection": (),
    "Constraint": (),
    "Enumeration": (),
    "Flow": (),
    "Individual": (),
    "Interface": (),
    "Occurrence": (),
    "Metadata": (),
}

USAGE_FIELDS: Dict[str, Tuple[str, ...]] = {
    "Part": ("typed_by",),
    "Port": ("direction", "typed_by"),
    "Action": ("typed_by",),
    "State": ("typed_by",),
    "Item": ("typed_by",),
    "Attribute": ("data_type", "typed_by"),
    "Requirement": ("text", "typed_by"),
    "Concern": ("typed_by",),
    "Case": ("typed_by",),
    "View": ("typed_by",),
    "Enumeration": ("typed_by",),
    "SatisfyRequirement": ("satisfied_requirement",),
    "PerformAction": ("performed_action",),
    "ExhibitState": ("exhibited_state",),
    "IncludeUseCase": ("included_use_case",),
}

FIELD_DEFAULTS: Dict[str, Callable[[], Any]] = {
    "features": list,
    "direction": lambda: "in",
}

# Upstream payload key -> Symbol attribute
_SYMBOL_KEYS = {
    "name": "name",
    "qualifiedName": "qualified_name",
    "kind": "kind",
    "definitionKind": "definition_kind",
    "usageKind": "usage_kind",
    "features": "features",
    "typedBy": "typed_by",
    "direction": "direction",
    "text": "text",
    "dataType": "data_type",
    "satisfiedRequirement": "satisfied_requirement",
    "performedAction": "performed_action",
    "exhibitedState": "exhibited_state",
    "includedUseCase": "included_use_case",
}


# ============================================================================
# Input records
# ============================================================================

def _is_tag(value: Any, known: Mapping[str, Any]) -> bool:
    """True if ``value`` is one of the ``known`` sub-kind tags; payload values of other types never are."""
    return isinstance(value, str) and value in known


@dataclass
class Symbol:
    """A symbol reported by the semantic analyzer."""
    name: str
    qualified_name: str
    kind: str
    definition_kind: Optional[str] = None
    usage_kind: Optional[str] = None
    features: Optional[List[str]] = None
    typed_by: Optional[str] = None
    direction: Optional[str] = None
    text: Optional[str] = None
    data_type: Optional[str] = None
    satisfied_requirement: Optional[str] = None
    performed_action: Optional[str] = None
    exhibited_state: Optional[str] = None
    included_use_case: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Symbol':
        """
        Build a symbol from an upstream payload entry.

        Both the upstream camelCase keys and the snake_case attribute
        names are accepted; unknown keys are ignored.
        """
        values = {}
        for key, value in data.items():
            attr = _SYMBOL_KEYS.get(key, key)
            if attr in cls.__dataclass_fields__:
                values[attr] = value
        for required in ("name", "qualified_name", "kind"):
            if required not in values:
                raise ValueError(f"Symbol is missing '{required}': {dict(data)}")
        if not isinstance(values["qualified_name"], str):
            raise ValueError(f"Symbol qualified name must be a string: {dict(data)}")
        return cls(**values)

    @property
    def metaclass(self) -> Optional[str]:
        """Node type this symbol converts to, or None if it is not converted."""
        if self.kind == "Definition" and _is_tag(self.definition_kind, DEFINITION_FIELDS):
            return f"{self.definition_kind}Def"
        if self.kind == "Usage" and _is_tag(self.usage_kind, USAGE_FIELDS):
            return f"{self.usage_kind}Usage"
        return None

    def node_fields(self) -> Dict[str, Any]:
        """Sub-kind specific fields of this symbol, with defaults applied."""
        if self.kind == "Definition" and _is_tag(self.definition_kind, DEFINITION_FIELDS):
            names = DEFINITION_FIELDS[self.definition_kind]
        elif self.kind == "Usage" and _is_tag(self.usage_kind, USAGE_FIELDS):
            names = USAGE_FIELDS[self.usage_kind]
        else:
            names = ()

        fields = {}
        for name in names:
            value = getattr(self, name)
            if value is None and name in FIELD_DEFAULTS:
                value = FIELD_DEFAULTS[name]()
            fields[name] = value
        return fields


@dataclass
class RelationshipRecord:
    """A (type, source, target) triple reported by the semantic analyzer."""
    type: str
    source: str
    target: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'RelationshipRecord':
        try:
            return cls(type=data["type"], source=data["source"], target=data["target"])
        except KeyError as e:
            raise ValueError(f"Relationship is missing {e}: {dict(data)}") from e


@dataclass
class WorkspaceData:
    """Complete workspace payload: symbols plus relationships."""
    symbols: List[Symbol] = field(default_factory=list)
    relationships: List[RelationshipRecord] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'WorkspaceData':
        return cls(
            symbols=[Symbol.from_dict(s) for s in data.get("symbols") or []],
            relationships=[RelationshipRecord.from_dict(r) for r in data.get("relationships") or []],
        )


# ============================================================================
# Edge identity
# ============================================================================

class DeterministicEdgeIds:
    """
    Edge ids derived from (type, source, target).

    The n-th repeat of the same triple gets a ``#n`` suffix, so the same
    input always yields the same ids.
    """

    def __init__(self):
        self._seen: Counter = Counter()

    def __call__(self, record: RelationshipRecord) -> str:
        base = f"{record.type}:{record.source}->{record.target}"
        count = self._seen[base]
        self._seen[base] += 1
        return base if count == 0 else f"{base}#{count}"


class SequentialEdgeIds:
    """Edge ids ``edge_0``, ``edge_1``, ... counted per instance."""

    def __init__(self, prefix: str = "edge_"):
        self.prefix = prefix
        self._next = 0

    def __call__(self, record: RelationshipRecord) -> str:
        edge_id = f"{self.prefix}{self._next}"
        self._next += 1
        return edge_id


EDGE_ID_STRATEGIES = {
    "deterministic": DeterministicEdgeIds,
    "sequential": SequentialEdgeIds,
}


def make_edge_ids(strategy: str = "deterministic") -> Callable[[RelationshipRecord], str]:
    """Create a fresh edge id generator for ``strategy``."""
    try:
        return EDGE_ID_STRATEGIES[strategy]()
    except KeyError:
        raise ValueError(
            f"Unknown edge id strategy '{strategy}', expected one of {sorted(EDGE_ID_STRATEGIES)}"
        )


# ============================================================================
# Conversion
# ============================================================================

def node_id(qualified_name: str) -> str:
    """Diagram node id for a qualified name."""
    return qualified_name.replace("::", "_")


def convert_symbol_to_node(symbol: Symbol) -> Optional[Dict[str, Any]]:
    """
    Convert a symbol into a SysML node record.

    Returns:
        Dict with id, type, name, qualified_name and the sub-kind fields,
        or None if the symbol is not converted
    """
    metaclass = symbol.metaclass
    if metaclass is None:
        logger.debug(f"Skipping symbol '{symbol.qualified_name}' ({symbol.kind})")
        return None

    return {
        "id": node_id(symbol.qualified_name),
        "type": metaclass,
        "name": symbol.name,
        "qualified_name": symbol.qualified_name,
        **symbol.node_fields(),
    }


def convert_relationship_to_edge(
    relationship: RelationshipRecord,
    edge_ids: Optional[Callable[[RelationshipRecord], str]] = None,
) -> DiagramEdge:
    """
    Convert a relationship record into a diagram edge.

    Raises:
        UnknownRelationshipTypeError: If the type is outside the vocabulary
    """
    if relationship.type not in RELATIONSHIP_TYPES:
        raise UnknownRelationshipTypeError(
            relationship.type, relationship.source, relationship.target
        )

    edge_ids = edge_ids or DeterministicEdgeIds()
    return DiagramEdge(
        id=edge_ids(relationship),
        source=relationship.source,
        target=relationship.target,
        type=relationship.type,
    )


def create_diagram_from_workspace(
    workspace: WorkspaceData,
    edge_ids: Optional[Callable[[RelationshipRecord], str]] = None,
    spacing: float = 200,
) -> Diagram:
    """
    Convert a complete workspace into a diagram.

    Args:
        workspace: Symbols and relationships from the analyzer
        edge_ids: Edge id generator; a fresh DeterministicEdgeIds by default
        spacing: Horizontal spacing of the placeholder layout

    Returns:
        Diagram whose node data holds the full SysML node record
    """
    edge_ids = edge_ids or DeterministicEdgeIds()

    nodes = []
    for symbol in workspace.symbols:
        record = convert_symbol_to_node(symbol)
        if record:
            nodes.append(DiagramNode(id=record["id"], type=record["type"], data=record))

    edges = [convert_relationship_to_edge(rel, edge_ids) for rel in workspace.relationships]

    logger.debug(
        f"Converted workspace: {len(nodes)}/{len(workspace.symbols)} symbols, {len(edges)} relationships"
    )
    return Diagram(nodes=placeholder_layout(nodes, spacing), edges=edges)

