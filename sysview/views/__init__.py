"""
Views for sysview.

A view selects part of a model and presents it as a diagram:

- Expose: declarative inclusion rules (element, Pkg::*, Pkg::**)
- Filter: composable predicates over metaclass and name
- Project: surviving elements become nodes, relationships between them edges

Example:
    from sysview.views import ViewResolver, create_view_definition, create_view_usage
    from sysview.views.dsl import expose_recursive, filter_by_metaclass

    definition = create_view_definition(
        'Parts',
        exposes=[expose_recursive('Vehicle')],
        filters=[filter_by_metaclass('PartUsage')],
    )
    resolved = ViewResolver(store).resolve(create_view_usage('parts', 'Parts'), definition)
"""

from .classifier import default_filters, suggest_view_type
from .dsl import (
    ExposeRule,
    ViewDefinition,
    ViewType,
    ViewUsage,
    create_view_definition,
    create_view_usage,
)
from .expose import ExposeResolver
from .filters import apply_filters, evaluate_filter
from .resolver import ResolvedView, ViewResolver, resolve_view
from .service import ViewCatalog, ViewDefinitionError

__all__ = [
    'ExposeRule',
    'ExposeResolver',
    'ResolvedView',
    'ViewCatalog',
    'ViewDefinition',
    'ViewDefinitionError',
    'ViewResolver',
    'ViewType',
    'ViewUsage',
    'apply_filters',
    'create_view_definition',
    'create_view_usage',
    'default_filters',
    'evaluate_filter',
    'resolve_view',
    'suggest_view_type',
]
