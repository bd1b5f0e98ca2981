"""
Tests for the model store.
"""

import pytest

from sysview.model import Element, ModelStore, Relationship


@pytest.fixture
def store():
    """Store with a package and one part."""
    store = ModelStore()
    store.add_element(Element(
        id="Vehicle", name="Vehicle", qualified_name="Vehicle",
        metaclass="Package", children=["Vehicle::engine"],
    ))
    store.add_element(Element(
        id="Vehicle_engine", name="engine", qualified_name="Vehicle::engine",
        metaclass="PartUsage", parent="Vehicle",
    ))
    return store


class TestModelStore:
    """Element and relationship storage."""

    def test_get_by_qualified_name(self, store):
        """Given stored elements, when looking one up, then it is returned."""
        # When: Looking up by exact qualified name
        element = store.get("Vehicle::engine")

        # Then: The element is found
        assert element is not None
        assert element.metaclass == "PartUsage"
        assert element.parent == "Vehicle"

    def test_get_missing_returns_none(self, store):
        """Given stored elements, when looking up an unknown name, then None is returned."""
        assert store.get("Vehicle::wheel") is None
        assert "Vehicle::wheel" not in store
        assert "Vehicle" in store

    def test_add_element_overwrites_same_qualified_name(self, store):
        """Given an existing element, when adding another with the same key, then it replaces it."""
        # When: Adding an element with a taken qualified name
        store.add_element(Element(
            id="x", name="engine", qualified_name="Vehicle::engine", metaclass="PartDef",
        ))

        # Then: Replaced, not duplicated
        assert len(store) == 2
        assert store.get("Vehicle::engine").metaclass == "PartDef"

    def test_iteration_keeps_insertion_order(self, store):
        """Given elements added in order, when iterating, then the order is preserved."""
        assert [e.qualified_name for e in store] == ["Vehicle", "Vehicle::engine"]

    def test_relationships_are_not_deduplicated(self, store):
        """Given a relationship added twice, when listing, then both are kept."""
        rel = Relationship(id="r1", type="typing", source="Vehicle::engine", target="Engine")

        store.add_relationship(rel)
        store.add_relationship(rel)

        assert len(store.relationships) == 2

    def test_mutable_defaults_are_not_shared(self):
        """Given two elements built with defaults, then their children lists are independent."""
        a = Element(id="a", name="a", qualified_name="a", metaclass="PartUsage")
        b = Element(id="b", name="b", qualified_name="b", metaclass="PartUsage")

        a.children.append("a::x")

        assert b.children == []
