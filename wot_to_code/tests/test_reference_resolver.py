import asyncio
import json
import logging

import pytest

from wot_to_code.pipeline.analyzer.reference_resolver import ReferenceResolver, find_references, split_reference
from wot_to_code.pipeline.errors import ReferenceResolutionError, UnsupportedSchemaError
from wot_to_code.pipeline.loader import ModelLoader


def write_json(path, document):
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


def inline(schema, base_path, strict=True):
    async def run():
        async with ModelLoader() as loader:
            return await ReferenceResolver(loader, strict=strict).inline(schema, base_path.as_uri())

    return asyncio.run(run())


@pytest.fixture
def common(tmp_path):
    return write_json(
        tmp_path / "common.tm.jsonld",
        {
            "properties": {
                "brightness": {"type": "integer", "minimum": 0},
                "location": {
                    "type": "object",
                    "properties": {"room": {"tm:ref": "#/properties/room"}},
                },
                "room": {"type": "string"},
            }
        },
    )


class TestFindReferences:
    """Test cases for locating tm:ref markers"""

    def test_paths(self):
        schema = {
            "properties": {"a": {"tm:ref": "x.json#/a", "title": "ignored"}},
            "b": [{"tm:ref": "x.json#/b"}, {"type": "string"}],
        }
        markers = find_references(schema)
        assert [m.parent_path for m in markers] == ["/properties/a", "/b/0"]
        assert [m.reference for m in markers] == ["x.json#/a", "x.json#/b"]

    def test_root_marker(self):
        assert [m.parent_path for m in find_references({"tm:ref": "x.json#/a"})] == [""]

    def test_split_reference(self):
        assert split_reference("common.tm.jsonld#/properties/a") == ("common.tm.jsonld", "/properties/a")
        assert split_reference("#/properties/a") == ("", "/properties/a")

    @pytest.mark.parametrize("reference", ["common.tm.jsonld", "a#b#c"])
    def test_split_reference_needs_one_delimiter(self, reference):
        with pytest.raises(ReferenceResolutionError) as exc_info:
            split_reference(reference)
        assert f"'{reference}'" in str(exc_info.value)


class TestReferenceResolver:
    """Test cases for inlining tm:ref markers"""

    def test_inline_splices_fragment(self, tmp_path, common):
        model = tmp_path / "lamp.tm.jsonld"
        schema = {
            "level": {"tm:ref": "common.tm.jsonld#/properties/brightness"},
            "on": {"type": "boolean"},
        }
        result = inline(schema, model)
        assert result == {
            "level": {"type": "integer", "minimum": 0},
            "on": {"type": "boolean"},
        }
        # Input is left untouched
        assert schema["level"] == {"tm:ref": "common.tm.jsonld#/properties/brightness"}

    def test_inline_chained_reference(self, tmp_path, common):
        result = inline({"where": {"tm:ref": "common.tm.jsonld#/properties/location"}}, tmp_path / "lamp.tm.jsonld")
        assert result["where"]["properties"]["room"] == {"type": "string"}

    def test_inline_list_items(self, tmp_path, common):
        schema = {"oneOf": [{"tm:ref": "common.tm.jsonld#/properties/room"}, {"tm:ref": "common.tm.jsonld#/properties/brightness"}]}
        result = inline(schema, tmp_path / "lamp.tm.jsonld")
        assert result["oneOf"] == [{"type": "string"}, {"type": "integer", "minimum": 0}]

    def test_strict_missing_pointer(self, tmp_path, common):
        with pytest.raises(ReferenceResolutionError, match="does not resolve"):
            inline({"x": {"tm:ref": "common.tm.jsonld#/properties/missing"}}, tmp_path / "lamp.tm.jsonld")

    def test_lenient_missing_pointer_drops_schema(self, tmp_path, common, caplog):
        schema = {
            "x": {"tm:ref": "common.tm.jsonld#/properties/missing"},
            "level": {"tm:ref": "common.tm.jsonld#/properties/brightness"},
        }
        with caplog.at_level(logging.WARNING):
            result = inline(schema, tmp_path / "lamp.tm.jsonld", strict=False)
        assert result == {"level": {"type": "integer", "minimum": 0}}
        assert "Skipping reference" in caplog.text

    def test_lenient_missing_list_item(self, tmp_path, common):
        schema = {
            "oneOf": [
                {"tm:ref": "common.tm.jsonld#/properties/missing"},
                {"tm:ref": "common.tm.jsonld#/properties/room"},
            ]
        }
        result = inline(schema, tmp_path / "lamp.tm.jsonld", strict=False)
        assert result == {"oneOf": [{"type": "string"}]}

    def test_cycle(self, tmp_path):
        write_json(tmp_path / "a.tm.jsonld", {"properties": {"a": {"tm:ref": "b.tm.jsonld#/properties/b"}}})
        write_json(tmp_path / "b.tm.jsonld", {"properties": {"b": {"tm:ref": "a.tm.jsonld#/properties/a"}}})
        with pytest.raises(UnsupportedSchemaError, match="Cyclic"):
            inline({"start": {"tm:ref": "a.tm.jsonld#/properties/a"}}, tmp_path / "lamp.tm.jsonld")


if __name__ == "__main__":
    pytest.main([__file__])
