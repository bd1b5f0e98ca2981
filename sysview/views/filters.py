"""
Filter evaluation.

A filter expression is evaluated against one element at a time. And/Or
short-circuit: the right operand of And is only evaluated while the left
holds, the right operand of Or only when the left fails.
"""

from typing import List, Sequence

from ..model import Element
from .dsl import (
    And,
    ExpressionTest,
    FilterExpression,
    MatchAll,
    MetaclassTest,
    Not,
    Or,
)


def evaluate_filter(element: Element, expr: FilterExpression) -> bool:
    """
    Evaluate a filter expression against an element.

    Args:
        element: Candidate element
        expr: Filter expression tree

    Returns:
        True if the element passes the filter

    Raises:
        TypeError: If ``expr`` is not a filter expression
    """
    if isinstance(expr, MatchAll):
        return True

    if isinstance(expr, MetaclassTest):
        return element.metaclass == expr.metaclass

    if isinstance(expr, ExpressionTest):
        return expr.expression in element.metaclass or expr.expression in element.name

    if isinstance(expr, Not):
        return not evaluate_filter(element, expr.operand)

    if isinstance(expr, And):
        return evaluate_filter(element, expr.left) and evaluate_filter(element, expr.right)

    if isinstance(expr, Or):
        return evaluate_filter(element, expr.left) or evaluate_filter(element, expr.right)

    raise TypeError(f"Not a filter expression: {expr!r}")


def apply_filters(elements: List[Element], filters: Sequence[FilterExpression]) -> List[Element]:
    """
    Keep the elements that pass every filter.

    Top-level filters are AND-ed. With no filters the input list is
    returned as is.
    """
    if not filters:
        return elements

    return [
        element for element in elements
        if all(evaluate_filter(element, f) for f in filters)
    ]
