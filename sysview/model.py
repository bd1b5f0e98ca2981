"""
Model store for sysview.

Holds the elements and relationships of a SysML model as produced by the
upstream semantic analyzer. The store is a plain in-memory container:

- Elements are keyed by qualified name (``Package::Part::port``)
- Relationships are kept in insertion order and scanned linearly

The resolution engine only ever reads from the store.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional


QUALIFIED_NAME_SEPARATOR = "::"


@dataclass
class Element:
    """
    A node of the source model.

    Attributes:
        id: Opaque identifier, used as the diagram node id
        name: Simple name
        qualified_name: ``::``-delimited path, unique within a store
        metaclass: Kind tag such as "PartUsage" or "PortDef"
        parent: Qualified name of the owning element, if any
        children: Qualified names of owned elements, in order
        properties: Open-ended property bag
    """
    id: str
    name: str
    qualified_name: str
    metaclass: str
    parent: Optional[str] = None
    children: List[str] = field(default_factory=list)
    properties: Dict[str, Any] = field(default_factory=dict)

    def __repr__(self):
        return f"<Element({self.qualified_name}: {self.metaclass})>"


@dataclass
class Relationship:
    """A directed, typed edge between two elements' qualified names."""
    id: str
    type: str
    source: str
    target: str
    properties: Dict[str, Any] = field(default_factory=dict)

    def __repr__(self):
        return f"<Relationship({self.source} -{self.type}-> {self.target})>"


class ModelStore:
    """
    Mutable container of elements and relationships.

    Adding an element with a qualified name that is already present
    replaces the previous element. Relationships are appended without
    de-duplication. There is no delete operation.
    """

    def __init__(self):
        self.elements: Dict[str, Element] = {}
        self.relationships: List[Relationship] = []

    def add_element(self, element: Element) -> None:
        """Insert or overwrite an element by qualified name."""
        self.elements[element.qualified_name] = element

    def add_relationship(self, relationship: Relationship) -> None:
        """Append a relationship."""
        self.relationships.append(relationship)

    def get(self, qualified_name: str) -> Optional[Element]:
        """Look up an element by exact qualified name."""
        return self.elements.get(qualified_name)

    def __contains__(self, qualified_name: str) -> bool:
        return qualified_name in self.elements

    def __iter__(self) -> Iterator[Element]:
        return iter(self.elements.values())

    def __len__(self) -> int:
        return len(self.elements)

    def __repr__(self):
        return f"<ModelStore(elements={len(self.elements)}, relationships={len(self.relationships)})>"
