"""
View resolution.

Resolves a view usage against its definition and a model store:

    resolve(usage) = project(filter(expose(store)))

Each stage is a pure function of its inputs. The result is a fresh
ResolvedView on every call; nothing is cached between calls.
"""

import logging
from copy import deepcopy
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ..diagram import Diagram, DiagramEdge, DiagramNode
from ..model import ModelStore
from .dsl import RenderingReference, ViewDefinition, ViewUsage, effective
from .expose import ExposeResolver
from .filters import apply_filters
from .projection import element_to_node, find_relationship_edges

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedView:
    """
    Result of resolving a view.

    ``exposed_count`` is the number of elements before filtering,
    ``filtered_count`` the number that survived.
    """
    view: ViewUsage
    definition: ViewDefinition
    nodes: Tuple[DiagramNode, ...]
    edges: Tuple[DiagramEdge, ...]
    exposed_count: int
    filtered_count: int
    rendering: Optional[RenderingReference] = None

    def to_diagram(self) -> Diagram:
        """A new Diagram holding copies of the nodes and edges, free to be laid out."""
        return Diagram(nodes=deepcopy(list(self.nodes)), edges=deepcopy(list(self.edges)))

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly representation."""
        return {
            'view': self.view.name,
            'definition': self.definition.name,
            'view_type': self.definition.view_type.value,
            'rendering': self.rendering.name if self.rendering else None,
            'exposed_count': self.exposed_count,
            'filtered_count': self.filtered_count,
            **self.to_diagram().to_dict(),
        }


class ViewResolver:
    """
    Resolves views against a model store.

    The store is read-only for the duration of a call; callers that edit
    the model concurrently must snapshot it first.
    """

    def __init__(self, store: ModelStore):
        self.store = store
        self.exposer = ExposeResolver(store)

    def resolve(self, usage: ViewUsage, definition: ViewDefinition) -> ResolvedView:
        """
        Resolve a view usage to diagram content.

        Args:
            usage: The view usage, possibly overriding the definition
            definition: The view definition the usage instantiates

        Returns:
            ResolvedView with nodes, edges and stage counts
        """
        exposes = effective(usage.exposes, definition.exposes)
        filters = effective(usage.filters, definition.filters)
        rendering = effective(usage.rendering, definition.rendering)

        # Stage 1: Expose
        exposed = self.exposer.resolve(exposes)

        # Stage 2: Filter
        filtered = apply_filters(exposed, filters)

        # Stage 3: Project
        nodes = tuple(element_to_node(element) for element in filtered)
        edges = tuple(find_relationship_edges(filtered, self.store.relationships))

        logger.debug(
            f"Resolved view '{usage.name}' ({definition.name}): "
            f"exposed={len(exposed)}, filtered={len(filtered)}, edges={len(edges)}"
        )

        return ResolvedView(
            view=usage,
            definition=definition,
            nodes=nodes,
            edges=edges,
            exposed_count=len(exposed),
            filtered_count=len(filtered),
            rendering=rendering,
        )


def resolve_view(usage: ViewUsage, definition: ViewDefinition, store: ModelStore) -> ResolvedView:
    """Resolve ``usage`` of ``definition`` against ``store``."""
    return ViewResolver(store).resolve(usage, definition)
