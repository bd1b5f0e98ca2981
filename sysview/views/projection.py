"""
Projection of model elements into diagram nodes and edges.
"""

import logging
from typing import Iterable, List, Optional, Sequence

from ..diagram import Diagram, DiagramEdge, DiagramNode, Position, placeholder_layout
from ..model import Element, Relationship

logger = logging.getLogger(__name__)


def element_to_node(element: Element) -> DiagramNode:
    """
    Convert an element into a diagram node.

    The position is a placeholder; the layout collaborator sets the real one.
    """
    return DiagramNode(
        id=element.id,
        type=element.metaclass,
        position=Position(x=0, y=0),
        data={
            'name': element.name,
            'qualified_name': element.qualified_name,
            **element.properties,
        },
    )


def relationship_to_edge(relationship: Relationship) -> DiagramEdge:
    properties = relationship.properties
    return DiagramEdge(
        id=relationship.id,
        source=relationship.source,
        target=relationship.target,
        type=relationship.type,
        label=properties.get('label'),
        multiplicity=properties.get('multiplicity'),
        data=dict(properties),
    )


def find_relationship_edges(
    elements: Iterable[Element],
    relationships: Iterable[Relationship],
) -> List[DiagramEdge]:
    """
    Find the relationships whose source and target are both among ``elements``.

    Relationships with a single surviving endpoint are dropped.
    """
    names = {element.qualified_name for element in elements}

    return [
        relationship_to_edge(rel)
        for rel in relationships
        if rel.source in names and rel.target in names
    ]


class ProjectionBuilder:
    """Builds a placeholder-laid-out Diagram from elements and relationships."""

    def __init__(self, spacing: float = 200):
        self.spacing = spacing

    def build(
        self,
        elements: Sequence[Element],
        relationships: Iterable[Relationship],
        spacing: Optional[float] = None,
    ) -> Diagram:
        spacing = self.spacing if spacing is None else spacing
        nodes = placeholder_layout([element_to_node(e) for e in elements], spacing)
        edges = find_relationship_edges(elements, relationships)
        logger.debug(f"Projected {len(nodes)} nodes and {len(edges)} edges")
        return Diagram(nodes=nodes, edges=edges)
