"""
Diagram contract shared with the layout/rendering side.

sysview never computes real coordinates. Nodes leave the engine with a
placeholder position that the layout collaborator overwrites; the
LayoutConfig here only describes what that collaborator should do.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class LayoutDirection(str, Enum):
    """Direction of a hierarchical layout."""
    TOP_BOTTOM = "TB"
    BOTTOM_TOP = "BT"
    LEFT_RIGHT = "LR"
    RIGHT_LEFT = "RL"


class LayoutAlgorithm(str, Enum):
    """Layout engines the renderer knows about."""
    DAGRE = "dagre"
    ELK = "elk"


@dataclass
class LayoutConfig:
    """Configuration handed to the layout collaborator."""
    algorithm: str = LayoutAlgorithm.DAGRE.value
    direction: str = LayoutDirection.TOP_BOTTOM.value
    node_spacing: Optional[int] = 50
    rank_spacing: Optional[int] = 100
    edge_spacing: Optional[int] = None

    def __post_init__(self):
        # Validate against the enums but keep plain strings for JSON round trips
        self.algorithm = LayoutAlgorithm(self.algorithm).value
        self.direction = LayoutDirection(self.direction).value


@dataclass
class Position:
    x: float = 0
    y: float = 0


@dataclass
class DiagramNode:
    """A presentable node: id, type tag, placeholder position and data bag."""
    id: str
    type: str
    position: Position = field(default_factory=Position)
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DiagramEdge:
    """An edge between two node sources/targets (qualified names)."""
    id: str
    source: str
    target: str
    type: Optional[str] = None
    label: Optional[str] = None
    multiplicity: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        result = {'id': self.id, 'source': self.source, 'target': self.target}
        for key in ('type', 'label', 'multiplicity'):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.data:
            result['data'] = dict(self.data)
        return result


@dataclass
class Diagram:
    """Ordered nodes plus edges, ready for the layout collaborator."""
    nodes: List[DiagramNode] = field(default_factory=list)
    edges: List[DiagramEdge] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'nodes': [node.to_dict() for node in self.nodes],
            'edges': [edge.to_dict() for edge in self.edges],
        }


def create_empty_diagram() -> Diagram:
    return Diagram()


def placeholder_layout(nodes: List[DiagramNode], spacing: float = 200) -> List[DiagramNode]:
    """
    Assign sequential horizontal placeholder positions.

    Args:
        nodes: Nodes to position, in display order
        spacing: Horizontal distance between consecutive nodes

    Returns:
        The same nodes, with ``position`` set to (index * spacing, 0)
    """
    for index, node in enumerate(nodes):
        node.position = Position(x=index * spacing, y=0)
    return nodes
