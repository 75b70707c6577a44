"""
Thing Model parser that builds the schema graph.

Runs after model references have been inlined: the parser only sees plain
JSON and turns it into SchemaNode trees without any naming or typing
decision.
"""

from __future__ import annotations

import json
from typing import Any

from ..errors import MalformedSchemaError, UnsupportedSchemaError
from .nodes import (
    ActionModel,
    DeprecationNotice,
    Link,
    MapSource,
    SchemaKind,
    SchemaNode,
    ThingModel,
)

DITTO_CATEGORY = "ditto:category"
DITTO_DEPRECATION_NOTICE = "ditto:deprecationNotice"


class ThingModelParser:
    """Parses inlined Thing Model JSON into ThingModel / SchemaNode trees."""

    KINDS = {kind.value: kind for kind in SchemaKind}

    def parse(self, document: dict[str, Any], url: str = "") -> ThingModel:
        """
        Parse a Thing Model document.

        Args:
            document: The Thing Model JSON, with tm:ref markers already inlined
            url: Where the document was loaded from (for error messages)

        Returns:
            The parsed ThingModel

        Raises:
            MalformedSchemaError: If the title is missing or a schema is malformed
        """
        title = document.get("title")
        if not isinstance(title, str) or not title.strip():
            raise MalformedSchemaError(url or "#", "Thing Model has no title")

        model = ThingModel(title=title, url=url, description=document.get("description"))

        for name, schema in (document.get("properties") or {}).items():
            model.properties[name] = self.parse_schema(schema, f"#/properties/{name}")

        for name, action in (document.get("actions") or {}).items():
            model.actions[name] = self._parse_action(name, action or {})

        for link in document.get("links") or []:
            if isinstance(link, dict) and "href" in link:
                model.links.append(Link(href=link["href"], rel=link.get("rel"), instance_name=link.get("instanceName")))

        return model

    def _parse_action(self, name: str, action: dict[str, Any]) -> ActionModel:
        path = f"#/actions/{name}"
        return ActionModel(
            name=name,
            title=action.get("title"),
            description=action.get("description"),
            input=self.parse_schema(action["input"], f"{path}/input") if "input" in action else None,
            output=self.parse_schema(action["output"], f"{path}/output") if "output" in action else None,
            deprecation=self._parse_deprecation(action),
        )

    def parse_schema(self, schema: Any, path: str, implied_kind: SchemaKind | None = None) -> SchemaNode:
        """
        Parse a schema node recursively.

        Args:
            schema: The schema dictionary
            path: Current path in the document (for error messages)
            implied_kind: Kind to assume when "type" is absent (oneOf alternatives)

        Returns:
            The parsed SchemaNode

        Raises:
            MalformedSchemaError: If the node has no usable declared type
            UnsupportedSchemaError: If oneOf appears on a non-object node
        """
        if not isinstance(schema, dict):
            raise MalformedSchemaError(path, f"expected a schema object, got {type(schema).__name__}")

        kind = self._parse_kind(schema, path, implied_kind)

        if "oneOf" in schema and kind != SchemaKind.OBJECT:
            raise UnsupportedSchemaError(f"oneOf is only supported directly under an object schema, found on {kind.value} at '{path}'")

        node_fields: dict[str, Any] = {
            "kind": kind,
            "source_path": path,
            "title": schema.get("title"),
            "description": schema.get("description"),
            "format": schema.get("format"),
            "category": schema.get(DITTO_CATEGORY),
            "deprecation": self._parse_deprecation(schema),
            "raw": json.loads(json.dumps(schema)),
        }

        enum_values = schema.get("enum")
        if enum_values and kind not in (SchemaKind.ARRAY, SchemaKind.NULL):
            node_fields["enum"] = list(enum_values)

        if kind == SchemaKind.OBJECT:
            node_fields.update(self._parse_object_fields(schema, path))
        elif kind == SchemaKind.ARRAY:
            node_fields["items"] = self._parse_items(schema, path)

        return SchemaNode(**node_fields)

    def _parse_kind(self, schema: dict[str, Any], path: str, implied_kind: SchemaKind | None) -> SchemaKind:
        type_name = schema.get("type")
        if type_name is None:
            if implied_kind is not None:
                return implied_kind
            raise MalformedSchemaError(path, "missing declared type")
        if not isinstance(type_name, str) or type_name not in self.KINDS:
            raise MalformedSchemaError(path, f"unrecognized type {json.dumps(type_name)}")
        return self.KINDS[type_name]

    def _parse_object_fields(self, schema: dict[str, Any], path: str) -> dict[str, Any]:
        """Parse properties, oneOf and the map value schema of an object node."""
        result: dict[str, Any] = {
            "properties": {
                name: self.parse_schema(prop, f"{path}/properties/{name}") for name, prop in (schema.get("properties") or {}).items()
            },
            "required": list(schema.get("required") or []),
        }

        if "oneOf" in schema:
            alternatives = schema["oneOf"]
            if not isinstance(alternatives, list) or not alternatives:
                raise MalformedSchemaError(path, "oneOf must be a non-empty list")
            result["one_of"] = [
                self.parse_schema(alt, f"{path}/oneOf/{i}", implied_kind=self._implied_alternative_kind(alt))
                for i, alt in enumerate(alternatives)
            ]

        # Pattern-keyed map wins over additionalProperties
        pattern_properties = schema.get("patternProperties")
        additional_properties = schema.get("additionalProperties")
        if isinstance(pattern_properties, dict) and pattern_properties:
            pattern, value_schema = next(iter(pattern_properties.items()))
            result["map_value"] = self.parse_schema(value_schema, f"{path}/patternProperties/{pattern}")
            result["map_source"] = MapSource.PATTERN_PROPERTIES
            result["map_key_pattern"] = pattern
        elif isinstance(additional_properties, dict):
            result["map_value"] = self.parse_schema(additional_properties, f"{path}/additionalProperties")
            result["map_source"] = MapSource.ADDITIONAL_PROPERTIES

        return result

    def _implied_alternative_kind(self, alternative: Any) -> SchemaKind | None:
        """oneOf alternatives listing properties are objects even without a type."""
        if isinstance(alternative, dict) and "properties" in alternative:
            return SchemaKind.OBJECT
        return None

    def _parse_items(self, schema: dict[str, Any], path: str) -> SchemaNode:
        items = schema.get("items")
        if items is None:
            raise MalformedSchemaError(path, "array schema has no items")
        if isinstance(items, list):
            raise UnsupportedSchemaError(f"Tuple-typed array items are not supported at '{path}'")
        return self.parse_schema(items, f"{path}/items")

    def _parse_deprecation(self, schema: dict[str, Any]) -> DeprecationNotice | None:
        """Extract a ditto:deprecationNotice whose "deprecated" flag is true."""
        notice = schema.get(DITTO_DEPRECATION_NOTICE)
        if not isinstance(notice, dict) or notice.get("deprecated") is not True:
            return None
        superseded_by = notice.get("supersededBy")
        removal_version = notice.get("removalVersion")
        return DeprecationNotice(
            superseded_by=superseded_by if isinstance(superseded_by, str) else None,
            removal_version=removal_version if isinstance(removal_version, str) else None,
        )
