"""
Expose resolution.

Turns a list of expose rules into the model elements they denote:

    target is an element, all_members off   -> the element
    target is an element, all_members on    -> the element and its members
    target is not an element                -> namespace prefix scan

Member expansion walks the child lists with an explicit work-list and a
visited set, so a cyclic parent/child graph yields a finite result.
"""

import logging
import re
from typing import Dict, Iterable, List

from ..model import QUALIFIED_NAME_SEPARATOR, Element, ModelStore
from .dsl import ExposeRule

logger = logging.getLogger(__name__)

_NAMESPACE_MARKER = re.compile(r'::(\*{1,2})?$')


def namespace_prefix(pattern: str) -> str:
    """Strip a trailing ``::``, ``::*`` or ``::**`` from a namespace pattern."""
    return _NAMESPACE_MARKER.sub('', pattern)


class ExposeResolver:
    """
    Resolves expose rules against a model store.

    The store is only read. Results preserve the order in which
    qualified names are first seen across all rules.
    """

    def __init__(self, store: ModelStore):
        self.store = store

    def resolve(self, rules: Iterable[ExposeRule]) -> List[Element]:
        """
        Collect the elements denoted by all rules.

        Args:
            rules: Expose rules, in declaration order

        Returns:
            Elements without duplicates, keyed by qualified name
        """
        result: Dict[str, Element] = {}

        for rule in rules:
            for element in self.resolve_rule(rule):
                result[element.qualified_name] = element

        return list(result.values())

    def resolve_rule(self, rule: ExposeRule) -> List[Element]:
        """Resolve a single expose rule."""
        element = self.store.get(rule.target)

        if element is None:
            return self.resolve_namespace(rule.target, rule.recursive)

        if not rule.all_members:
            return [element]

        return self.expose_members(element, rule.recursive)

    def resolve_namespace(self, pattern: str, recursive: bool) -> List[Element]:
        """
        Scan the store for elements inside a namespace.

        Direct children are always included; deeper descendants only
        when ``recursive`` is set. The namespace element itself is not
        part of the result.
        """
        prefix = namespace_prefix(pattern) + QUALIFIED_NAME_SEPARATOR
        result = []

        for qualified_name, element in self.store.elements.items():
            if not qualified_name.startswith(prefix):
                continue
            remainder = qualified_name[len(prefix):]
            is_direct_child = QUALIFIED_NAME_SEPARATOR not in remainder
            if recursive or is_direct_child:
                result.append(element)

        logger.debug(f"Namespace '{pattern}' matched {len(result)} elements (recursive={recursive})")
        return result

    def expose_members(self, element: Element, recursive: bool) -> List[Element]:
        """
        Return an element followed by its members.

        Children missing from the store are skipped. With ``recursive``
        the walk is depth-first pre-order; an element reached twice is
        emitted once.
        """
        result = [element]
        visited = {element.qualified_name}

        # Stack of pending child lists, consumed left to right
        stack = [iter(element.children)]

        while stack:
            child_name = next(stack[-1], None)
            if child_name is None:
                stack.pop()
                continue

            child = self.store.get(child_name)
            if child is None:
                continue

            if child.qualified_name in visited:
                logger.debug(
                    f"Skipping '{child.qualified_name}' under '{element.qualified_name}': already exposed"
                )
                continue

            visited.add(child.qualified_name)
            result.append(child)

            if recursive:
                stack.append(iter(child.children))

        return result


def collect_exposed_elements(rules: Iterable[ExposeRule], store: ModelStore) -> List[Element]:
    """Resolve expose rules against ``store``."""
    return ExposeResolver(store).resolve(rules)
