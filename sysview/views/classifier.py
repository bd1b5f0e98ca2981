"""
View-type heuristics: default filters per view category, and a category
guess from the metaclasses present in a set of elements.
"""

from typing import Iterable, List

from ..model import Element
from .dsl import FilterExpression, Metaclass, MetaclassTest, Or, ViewType


def default_filters(view_type: ViewType) -> List[FilterExpression]:
    """
    Canned filters for a view category.

    Returns a fresh list on every call. Categories without defaults
    (general, sequence) get no filters.
    """
    view_type = ViewType(view_type)

    if view_type == ViewType.INTERCONNECTION:
        return [Or(MetaclassTest(Metaclass.PART_USAGE), MetaclassTest(Metaclass.PORT_USAGE))]

    if view_type == ViewType.ACTION_FLOW:
        return [MetaclassTest(Metaclass.ACTION_USAGE)]

    if view_type == ViewType.STATE_TRANSITION:
        return [MetaclassTest(Metaclass.STATE_USAGE)]

    return []


# Checked in order; the first category whose metaclasses are present wins
CATEGORY_PRIORITY = [
    (ViewType.STATE_TRANSITION, {Metaclass.STATE_USAGE, Metaclass.STATE_DEF}),
    (ViewType.ACTION_FLOW, {Metaclass.ACTION_USAGE, Metaclass.ACTION_DEF}),
    (ViewType.INTERCONNECTION, {Metaclass.PORT_USAGE, Metaclass.CONNECTION_USAGE}),
]


def suggest_view_type(elements: Iterable[Element]) -> ViewType:
    """Suggest a view category from the metaclasses present in ``elements``."""
    metaclasses = {element.metaclass for element in elements}

    for view_type, markers in CATEGORY_PRIORITY:
        if metaclasses & markers:
            return view_type

    return ViewType.GENERAL
