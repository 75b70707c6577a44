import pytest

from wot_to_code.pipeline.errors import MalformedSchemaError, UnsupportedSchemaError
from wot_to_code.pipeline.schema_ast import MapSource, SchemaKind, ThingModelParser


@pytest.fixture
def parser():
    return ThingModelParser()


class TestThingModelParser:
    """Test cases for building the schema graph from inlined Thing Model JSON"""

    def test_parse_model(self, parser):
        model = parser.parse(
            {
                "title": "Lamp",
                "properties": {"on": {"type": "boolean"}},
                "actions": {"toggle": {"output": {"type": "boolean"}}, "reset": {}},
                "links": [
                    {"rel": "tm:submodel", "href": "light.tm.jsonld", "instanceName": "light"},
                    {"rel": "icon", "href": "lamp.png"},
                    {"rel": "tm:submodel"},
                ],
            },
            "file:///models/lamp.tm.jsonld",
        )
        assert model.title == "Lamp"
        assert model.properties["on"].kind == SchemaKind.BOOLEAN
        assert model.actions["toggle"].output.kind == SchemaKind.BOOLEAN
        assert model.actions["reset"].input is None
        assert [link.href for link in model.links] == ["light.tm.jsonld", "lamp.png"]
        assert [link.instance_name for link in model.submodel_links] == ["light"]

    def test_missing_title(self, parser):
        with pytest.raises(MalformedSchemaError, match="no title"):
            parser.parse({"properties": {}})

    def test_missing_type_names_path(self, parser):
        with pytest.raises(MalformedSchemaError) as exc_info:
            parser.parse({"title": "Lamp", "properties": {"level": {"minimum": 0}}})
        assert exc_info.value.path == "#/properties/level"
        assert "missing declared type" in str(exc_info.value)

    def test_unknown_type(self, parser):
        with pytest.raises(MalformedSchemaError, match="unrecognized type"):
            parser.parse_schema({"type": "color"}, "#/properties/color")

    def test_array_without_items(self, parser):
        with pytest.raises(MalformedSchemaError, match="no items"):
            parser.parse_schema({"type": "array"}, "#/properties/points")

    def test_one_of_on_string(self, parser):
        with pytest.raises(UnsupportedSchemaError, match="oneOf"):
            parser.parse_schema({"type": "string", "oneOf": [{"type": "string"}]}, "#/properties/color")

    def test_one_of_alternatives_default_to_object(self, parser):
        node = parser.parse_schema(
            {"type": "object", "oneOf": [{"properties": {"hex": {"type": "string"}}}]},
            "#/properties/color",
        )
        assert node.one_of[0].kind == SchemaKind.OBJECT
        assert node.one_of[0].source_path == "#/properties/color/oneOf/0"

    def test_pattern_properties_win(self, parser):
        node = parser.parse_schema(
            {
                "type": "object",
                "patternProperties": {"^[a-z]+$": {"type": "integer"}},
                "additionalProperties": {"type": "string"},
            },
            "#/properties/counters",
        )
        assert node.is_map
        assert node.map_source == MapSource.PATTERN_PROPERTIES
        assert node.map_key_pattern == "^[a-z]+$"
        assert node.map_value.kind == SchemaKind.INTEGER

    def test_additional_properties_map(self, parser):
        node = parser.parse_schema(
            {"type": "object", "additionalProperties": {"type": "string"}},
            "#/properties/labels",
        )
        assert node.map_source == MapSource.ADDITIONAL_PROPERTIES
        assert node.map_key_pattern is None
        assert parser.parse_schema({"type": "object", "additionalProperties": False}, "#").map_value is None

    def test_annotations(self, parser):
        node = parser.parse_schema(
            {
                "type": "integer",
                "ditto:category": "status",
                "ditto:deprecationNotice": {
                    "deprecated": True,
                    "supersededBy": "#/properties/brightness",
                    "removalVersion": "2.0.0",
                },
            },
            "#/properties/legacyLevel",
        )
        assert node.category == "status"
        assert node.deprecation.superseded_by == "#/properties/brightness"
        assert node.deprecation.removal_version == "2.0.0"

    def test_deprecation_requires_flag(self, parser):
        node = parser.parse_schema(
            {"type": "integer", "ditto:deprecationNotice": {"deprecated": False}},
            "#/properties/level",
        )
        assert node.deprecation is None

    def test_fingerprint_ignores_key_order(self, parser):
        a = parser.parse_schema({"type": "object", "properties": {"x": {"type": "number"}}, "title": "P"}, "#/a")
        b = parser.parse_schema({"title": "P", "properties": {"x": {"type": "number"}}, "type": "object"}, "#/b")
        assert a.fingerprint == b.fingerprint


if __name__ == "__main__":
    pytest.main([__file__])
