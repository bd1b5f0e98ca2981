"""
Tests for workspace conversion at the analyzer boundary.

Tests cover:
- Symbol parsing from the upstream payload
- Node records per definition/usage sub-kind
- Skipped symbols
- Relationship vocabulary and edge ids
- Whole-workspace diagrams
"""

import pytest

from sysview.converter import (
    RELATIONSHIP_TYPES,
    DeterministicEdgeIds,
    RelationshipRecord,
    SequentialEdgeIds,
    Symbol,
    UnknownRelationshipTypeError,
    WorkspaceData,
    convert_relationship_to_edge,
    convert_symbol_to_node,
    create_diagram_from_workspace,
    make_edge_ids,
    node_id,
)


def definition(name, kind, **fields):
    return Symbol(name=name, qualified_name=f"Pkg::{name}", kind="Definition", definition_kind=kind, **fields)


def usage(name, kind, **fields):
    return Symbol(name=name, qualified_name=f"Pkg::{name}", kind="Usage", usage_kind=kind, **fields)


class TestSymbolFromDict:

    def test_camel_case_keys(self):
        """Given an upstream payload entry, when parsed, then camelCase keys map to attributes."""
        symbol = Symbol.from_dict({
            "name": "engine",
            "qualifiedName": "Car::engine",
            "kind": "Usage",
            "usageKind": "Part",
            "typedBy": "Engine",
            "span": {"start": 1},
        })

        assert symbol.qualified_name == "Car::engine"
        assert symbol.usage_kind == "Part"
        assert symbol.typed_by == "Engine"

    def test_snake_case_keys(self):
        symbol = Symbol.from_dict({"name": "a", "qualified_name": "a", "kind": "Package"})

        assert symbol.kind == "Package"

    def test_missing_required_key(self):
        with pytest.raises(ValueError, match="qualified_name"):
            Symbol.from_dict({"name": "a", "kind": "Package"})


class TestConvertSymbol:

    def test_part_definition_defaults_features(self):
        node = convert_symbol_to_node(definition("Engine", "Part"))

        assert node == {
            "id": "Pkg_Engine",
            "type": "PartDef",
            "name": "Engine",
            "qualified_name": "Pkg::Engine",
            "features": [],
        }

    def test_port_definition_defaults_direction(self):
        assert convert_symbol_to_node(definition("FuelPort", "Port"))["direction"] == "in"

    def test_port_usage_keeps_direction(self):
        node = convert_symbol_to_node(usage("fuelOut", "Port", direction="out", typed_by="FuelPort"))

        assert node["type"] == "PortUsage"
        assert node["direction"] == "out"
        assert node["typed_by"] == "FuelPort"

    def test_requirement_text(self):
        node = convert_symbol_to_node(definition("MassReq", "Requirement", text="Mass < 2000 kg"))

        assert node["type"] == "RequirementDef"
        assert node["text"] == "Mass < 2000 kg"

    def test_attribute_data_type(self):
        node = convert_symbol_to_node(usage("mass", "Attribute", data_type="Real"))

        assert node["type"] == "AttributeUsage"
        assert node["data_type"] == "Real"

    def test_domain_usage_reference(self):
        node = convert_symbol_to_node(usage("s", "SatisfyRequirement", satisfied_requirement="MassReq"))

        assert node["type"] == "SatisfyRequirementUsage"
        assert node["satisfied_requirement"] == "MassReq"
        assert "typed_by" not in node

    @pytest.mark.parametrize("kind", ["Package", "Classifier", "Feature", "Alias"])
    def test_non_definition_kinds_skipped(self, kind):
        symbol = Symbol(name="x", qualified_name="x", kind=kind)

        assert convert_symbol_to_node(symbol) is None

    def test_missing_sub_kind_skipped(self):
        assert convert_symbol_to_node(Symbol(name="x", qualified_name="x", kind="Definition")) is None

    def test_unknown_sub_kind_skipped(self):
        assert convert_symbol_to_node(usage("x", "Wormhole")) is None

    @pytest.mark.parametrize("payload", [
        {"kind": "Usage", "usageKind": ["Part"]},
        {"kind": "Definition", "definitionKind": {"name": "Part"}},
        {"kind": ["Usage"], "usageKind": "Part"},
    ])
    def test_non_string_tags_skipped(self, payload):
        """Given sub-kind tags that are not strings, when converting, then the symbol is skipped."""
        symbol = Symbol.from_dict({"name": "x", "qualifiedName": "Pkg::x", **payload})

        assert symbol.metaclass is None
        assert symbol.node_fields() == {}
        assert convert_symbol_to_node(symbol) is None

    def test_non_string_qualified_name_rejected(self):
        with pytest.raises(ValueError, match="qualified name"):
            Symbol.from_dict({"name": "x", "qualifiedName": ["Pkg", "x"], "kind": "Package"})

    def test_node_id(self):
        assert node_id("A::B::c") == "A_B_c"


class TestConvertRelationship:

    @pytest.mark.parametrize("rel_type", RELATIONSHIP_TYPES)
    def test_known_types(self, rel_type):
        edge = convert_relationship_to_edge(RelationshipRecord(rel_type, "A", "B"))

        assert edge.type == rel_type
        assert (edge.source, edge.target) == ("A", "B")

    def test_unknown_type_raises(self):
        """Given a type outside the vocabulary, when converting, then the error carries the type."""
        with pytest.raises(UnknownRelationshipTypeError) as exc_info:
            convert_relationship_to_edge(RelationshipRecord("teleports", "A", "B"))

        assert exc_info.value.relationship_type == "teleports"
        assert exc_info.value.source == "A"
        assert isinstance(exc_info.value, ValueError)

    def test_record_missing_key(self):
        with pytest.raises(ValueError, match="missing"):
            RelationshipRecord.from_dict({"type": "typing", "source": "A"})


class TestEdgeIds:

    def test_deterministic_ids(self):
        ids = DeterministicEdgeIds()
        record = RelationshipRecord("typing", "A", "B")

        assert ids(record) == "typing:A->B"
        assert ids(record) == "typing:A->B#1"
        assert ids(RelationshipRecord("typing", "B", "A")) == "typing:B->A"

    def test_deterministic_across_instances(self):
        records = [RelationshipRecord("typing", "A", "B"), RelationshipRecord("typing", "A", "B")]

        first = [DeterministicEdgeIds()(r) for r in records]
        ids = DeterministicEdgeIds()
        second = [ids(r) for r in records]

        assert first == ["typing:A->B", "typing:A->B"]
        assert second == ["typing:A->B", "typing:A->B#1"]

    def test_sequential_ids_per_instance(self):
        record = RelationshipRecord("typing", "A", "B")
        ids = SequentialEdgeIds()

        assert [ids(record), ids(record)] == ["edge_0", "edge_1"]
        assert SequentialEdgeIds()(record) == "edge_0"

    def test_make_edge_ids(self):
        assert isinstance(make_edge_ids("sequential"), SequentialEdgeIds)
        assert isinstance(make_edge_ids(), DeterministicEdgeIds)

    def test_make_edge_ids_unknown(self):
        with pytest.raises(ValueError, match="Unknown edge id strategy"):
            make_edge_ids("random")


class TestCreateDiagram:

    @pytest.fixture
    def workspace(self):
        return WorkspaceData.from_dict({
            "symbols": [
                {"name": "Car", "qualifiedName": "Car", "kind": "Package"},
                {"name": "Engine", "qualifiedName": "Car::Engine", "kind": "Definition", "definitionKind": "Part"},
                {"name": "engine", "qualifiedName": "Car::engine", "kind": "Usage", "usageKind": "Part",
                 "typedBy": "Car::Engine"},
            ],
            "relationships": [
                {"type": "typing", "source": "Car::engine", "target": "Car::Engine"},
            ],
        })

    def test_nodes_and_edges(self, workspace):
        """Given a package, a definition and a usage, when converting, then the package is skipped."""
        diagram = create_diagram_from_workspace(workspace, spacing=100)

        assert [n.id for n in diagram.nodes] == ["Car_Engine", "Car_engine"]
        assert [n.position.x for n in diagram.nodes] == [0, 100]
        assert diagram.nodes[1].data["typed_by"] == "Car::Engine"
        assert [e.id for e in diagram.edges] == ["typing:Car::engine->Car::Engine"]

    def test_repeatable(self, workspace):
        """Given the same workspace, when converted twice, then the output is identical."""
        assert create_diagram_from_workspace(workspace).to_dict() == create_diagram_from_workspace(workspace).to_dict()

    def test_sequential_ids(self, workspace):
        diagram = create_diagram_from_workspace(workspace, edge_ids=SequentialEdgeIds())

        assert diagram.edges[0].id == "edge_0"

    def test_empty_workspace(self):
        diagram = create_diagram_from_workspace(WorkspaceData())

        assert diagram.to_dict() == {"nodes": [], "edges": []}
