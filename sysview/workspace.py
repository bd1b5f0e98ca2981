"""
Workspace loading.

Reads a workspace payload (symbols + relationships) from a JSON or YAML
file and populates a ModelStore from it.
"""

import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import yaml

from .converter import (
    DeterministicEdgeIds,
    RelationshipRecord,
    WorkspaceData,
    convert_relationship_to_edge,
    node_id,
)
from .model import QUALIFIED_NAME_SEPARATOR, Element, ModelStore, Relationship

logger = logging.getLogger(__name__)


def load_workspace(path: Union[str, Path]) -> WorkspaceData:
    """
    Load a workspace payload from a file.

    JSON is read through the YAML parser, so both formats are accepted.

    Args:
        path: Path to a .json or .yaml file

    Returns:
        WorkspaceData

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the payload is not a mapping or has malformed entries
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Workspace file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Workspace payload in {path} must be a mapping")

    workspace = WorkspaceData.from_dict(data)
    logger.info(
        f"Loaded workspace {path.name}: {len(workspace.symbols)} symbols, "
        f"{len(workspace.relationships)} relationships"
    )
    return workspace


def parent_name(qualified_name: str) -> Optional[str]:
    """Qualified name of the enclosing namespace, or None at top level."""
    if QUALIFIED_NAME_SEPARATOR not in qualified_name:
        return None
    return qualified_name.rsplit(QUALIFIED_NAME_SEPARATOR, 1)[0]


def build_model_store(
    workspace: WorkspaceData,
    edge_ids: Optional[Callable[[RelationshipRecord], str]] = None,
    store: Optional[ModelStore] = None,
) -> ModelStore:
    """
    Populate a model store from a workspace.

    Every symbol becomes an element. Symbols that do not convert to a
    diagram node (packages, features, ...) keep their coarse kind as
    metaclass so that they still act as namespaces. The parent of an
    element is its qualified-name prefix when that prefix is a symbol.

    Args:
        workspace: Workspace payload
        edge_ids: Relationship id generator; a fresh DeterministicEdgeIds by default
        store: Store to add to; a new one by default

    Returns:
        The populated store

    Raises:
        UnknownRelationshipTypeError: If a relationship type is unknown
    """
    store = store if store is not None else ModelStore()
    edge_ids = edge_ids or DeterministicEdgeIds()

    # Validate every relationship before the store is touched
    edges = [convert_relationship_to_edge(record, edge_ids) for record in workspace.relationships]

    known = {symbol.qualified_name for symbol in workspace.symbols}
    children: Dict[str, List[str]] = {}

    for symbol in workspace.symbols:
        parent = parent_name(symbol.qualified_name)
        if parent in known:
            children.setdefault(parent, []).append(symbol.qualified_name)

    for symbol in workspace.symbols:
        parent = parent_name(symbol.qualified_name)
        properties = {
            key: value for key, value in symbol.node_fields().items()
            if value is not None
        }
        store.add_element(Element(
            id=node_id(symbol.qualified_name),
            name=symbol.name,
            qualified_name=symbol.qualified_name,
            metaclass=symbol.metaclass or str(symbol.kind),
            parent=parent if parent in known else None,
            children=children.get(symbol.qualified_name, []),
            properties=properties,
        ))

    for edge in edges:
        store.add_relationship(Relationship(
            id=edge.id,
            type=edge.type,
            source=edge.source,
            target=edge.target,
        ))

    logger.debug(f"Built {store!r}")
    return store


def load_model_store(
    path: Union[str, Path],
    edge_ids: Optional[Callable[[RelationshipRecord], str]] = None,
) -> ModelStore:
    """Load a workspace file straight into a new ModelStore."""
    return build_model_store(load_workspace(path), edge_ids=edge_ids)
