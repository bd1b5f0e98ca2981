"""
sysview - SysML v2 view resolution.

Main API:
    from sysview import ViewCatalog, load_model_store

    # Load the analyzer's workspace into a model store
    store = load_model_store("model.yaml")

    # Register views from a YAML document
    catalog = ViewCatalog(store)
    catalog.load_file("views.yaml")

    # Resolve a view by name
    resolved = catalog.resolve("vehicleParts")
    diagram = resolved.to_diagram()
"""

from .diagram import Diagram, DiagramEdge, DiagramNode, LayoutConfig
from .model import Element, ModelStore, Relationship
from .views import ResolvedView, ViewCatalog, ViewResolver, resolve_view
from .workspace import build_model_store, load_model_store, load_workspace

__version__ = "0.1.0"
__all__ = [
    "Diagram",
    "DiagramEdge",
    "DiagramNode",
    "Element",
    "LayoutConfig",
    "ModelStore",
    "Relationship",
    "ResolvedView",
    "ViewCatalog",
    "ViewResolver",
    "build_model_store",
    "load_model_store",
    "load_workspace",
    "resolve_view",
]
