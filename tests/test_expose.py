"""
Tests for expose resolution.

Tests cover:
- Single element exposure
- Member expansion (direct and recursive)
- Namespace prefix scan (direct and recursive)
- De-duplication and ordering across rules
- Termination on cyclic child graphs
"""

import logging

import pytest

from sysview.model import Element, ModelStore
from sysview.views.dsl import (
    ExposeRule,
    expose_all_members,
    expose_member,
    expose_recursive,
    parse_expose,
)
from sysview.views.expose import ExposeResolver, collect_exposed_elements, namespace_prefix


def add(store, qualified_name, metaclass="PartUsage", children=(), parent=None):
    name = qualified_name.rsplit("::", 1)[-1]
    store.add_element(Element(
        id=qualified_name.replace("::", "_"),
        name=name,
        qualified_name=qualified_name,
        metaclass=metaclass,
        parent=parent,
        children=list(children),
    ))


@pytest.fixture
def store():
    """
    Vehicle (PartDef)
      Vehicle::engine
        Vehicle::engine::piston
      Vehicle::wheel
    """
    store = ModelStore()
    add(store, "Vehicle", "PartDef", children=["Vehicle::engine", "Vehicle::wheel"])
    add(store, "Vehicle::engine", children=["Vehicle::engine::piston"], parent="Vehicle")
    add(store, "Vehicle::engine::piston", parent="Vehicle::engine")
    add(store, "Vehicle::wheel", parent="Vehicle")
    return store


@pytest.fixture
def resolver(store):
    return ExposeResolver(store)


def names(elements):
    return [e.qualified_name for e in elements]


class TestExposeElement:
    """Exposing a target that exists as an element."""

    def test_single_element(self, resolver):
        """Given an existing element, when exposed without members, then only it is returned."""
        result = resolver.resolve([expose_member("Vehicle::engine")])

        assert names(result) == ["Vehicle::engine"]

    def test_all_members_direct(self, resolver):
        """Given an element with children, when exposing all members, then it and its direct children are returned."""
        result = resolver.resolve([ExposeRule(target="Vehicle", all_members=True)])

        assert names(result) == ["Vehicle", "Vehicle::engine", "Vehicle::wheel"]

    def test_all_members_recursive_is_depth_first(self, resolver):
        """Given nested children, when exposing recursively, then the walk is depth-first pre-order."""
        result = resolver.resolve([expose_recursive("Vehicle")])

        assert names(result) == [
            "Vehicle",
            "Vehicle::engine",
            "Vehicle::engine::piston",
            "Vehicle::wheel",
        ]

    def test_missing_children_are_skipped(self, store, resolver):
        """Given a child reference with no element, when expanding, then it is silently skipped."""
        # Given: A dangling child reference
        store.get("Vehicle").children.append("Vehicle::ghost")

        # When: Expanding members
        result = resolver.resolve([expose_all_members("Vehicle")])

        # Then: Only existing children are returned
        assert "Vehicle::ghost" not in names(result)
        assert len(result) == 3


class TestExposeNamespace:
    """Exposing a target that is not an element."""

    @pytest.fixture
    def pkg_store(self):
        store = ModelStore()
        add(store, "Pkg::A")
        add(store, "Pkg::A::B")
        add(store, "Other::C")
        return store

    def test_direct_children_only(self, pkg_store):
        """Given Pkg::A and Pkg::A::B, when exposing Pkg non-recursively, then only Pkg::A is returned."""
        result = ExposeResolver(pkg_store).resolve([ExposeRule(target="Pkg")])

        assert names(result) == ["Pkg::A"]

    def test_recursive_includes_descendants(self, pkg_store):
        """Given Pkg::A and Pkg::A::B, when exposing Pkg recursively, then both are returned."""
        result = ExposeResolver(pkg_store).resolve([ExposeRule(target="Pkg", recursive=True)])

        assert names(result) == ["Pkg::A", "Pkg::A::B"]

    @pytest.mark.parametrize("pattern", ["Pkg::", "Pkg::*", "Pkg::**"])
    def test_namespace_markers_are_stripped(self, pkg_store, pattern):
        """Given a pattern with a trailing marker, when scanning, then the marker is ignored."""
        result = ExposeResolver(pkg_store).resolve_namespace(pattern, recursive=False)

        assert names(result) == ["Pkg::A"]

    def test_prefix_must_end_at_separator(self, pkg_store):
        """Given Pkg2::X, when exposing Pkg, then Pkg2::X does not match."""
        add(pkg_store, "Pkg2::X")

        result = ExposeResolver(pkg_store).resolve([ExposeRule(target="Pkg", recursive=True)])

        assert "Pkg2::X" not in names(result)

    def test_unknown_namespace_is_empty(self, pkg_store):
        """Given no matching names, when exposing, then the result is empty."""
        assert ExposeResolver(pkg_store).resolve([ExposeRule(target="Nope")]) == []

    def test_namespace_element_itself_is_excluded(self, store):
        """Given a pattern target with no exact element, when scanning, then the namespace element is left out."""
        # Given: The literal key 'Vehicle::engine::*' is not an element
        rule = ExposeRule(target="Vehicle::engine::*")

        # When: Resolving falls back to the prefix scan
        result = ExposeResolver(store).resolve([rule])

        # Then: Only members of Vehicle::engine are returned
        assert names(result) == ["Vehicle::engine::piston"]

    def test_shorthand_on_existing_element_includes_it(self, store):
        """Given 'Vehicle::engine::*' shorthand, when parsed, then the element and its members are exposed."""
        result = ExposeResolver(store).resolve([parse_expose("Vehicle::engine::*")])

        assert names(result) == ["Vehicle::engine", "Vehicle::engine::piston"]


class TestExposeCombination:
    """Several rules together."""

    def test_duplicates_collapse_in_first_seen_order(self, resolver):
        """Given overlapping rules, when resolved, then each element appears once in first-seen order."""
        rules = [expose_member("Vehicle::wheel"), expose_recursive("Vehicle")]

        result = resolver.resolve(rules)

        assert names(result) == [
            "Vehicle::wheel",
            "Vehicle",
            "Vehicle::engine",
            "Vehicle::engine::piston",
        ]

    def test_no_rules_no_elements(self, resolver):
        assert resolver.resolve([]) == []

    def test_collect_exposed_elements(self, store):
        result = collect_exposed_elements([expose_member("Vehicle")], store)

        assert names(result) == ["Vehicle"]


class TestCycles:
    """Cyclic parent/child graphs terminate."""

    def test_self_cycle(self, caplog):
        """Given an element listing itself as child, when expanding recursively, then the walk terminates."""
        store = ModelStore()
        add(store, "Loop", children=["Loop"])

        with caplog.at_level(logging.DEBUG, logger="sysview"):
            result = ExposeResolver(store).resolve([expose_recursive("Loop")])

        assert names(result) == ["Loop"]
        assert "already exposed" in caplog.text

    def test_two_element_cycle(self):
        """Given A -> B -> A, when expanding recursively, then each appears once."""
        store = ModelStore()
        add(store, "A", children=["B"])
        add(store, "B", children=["A"])

        result = ExposeResolver(store).resolve([expose_recursive("A")])

        assert names(result) == ["A", "B"]


class TestNamespacePrefix:

    @pytest.mark.parametrize("pattern,expected", [
        ("Pkg", "Pkg"),
        ("Pkg::", "Pkg"),
        ("Pkg::*", "Pkg"),
        ("Pkg::**", "Pkg"),
        ("A::B::**", "A::B"),
    ])
    def test_namespace_prefix(self, pattern, expected):
        assert namespace_prefix(pattern) == expected
