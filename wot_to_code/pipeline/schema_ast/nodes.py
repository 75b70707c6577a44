"""
Schema graph node definitions for Thing Models.

A schema node is a tagged variant: one dataclass whose ``kind`` selects
which of the variant-specific fields are meaningful. Nodes are built by the
parser from already inlined JSON and are not mutated afterwards.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SchemaKind(str, Enum):
    """Declared type of a schema node."""

    BOOLEAN = "boolean"
    INTEGER = "integer"
    NUMBER = "number"
    STRING = "string"
    OBJECT = "object"
    ARRAY = "array"
    NULL = "null"

    @property
    def is_primitive(self) -> bool:
        return self in PRIMITIVE_KINDS


PRIMITIVE_KINDS = frozenset({SchemaKind.BOOLEAN, SchemaKind.INTEGER, SchemaKind.NUMBER, SchemaKind.STRING})


class MapSource(str, Enum):
    """Which keyword made an object map-shaped."""

    PATTERN_PROPERTIES = "patternProperties"
    ADDITIONAL_PROPERTIES = "additionalProperties"


@dataclass
class DeprecationNotice:
    """A ditto:deprecationNotice marker."""

    superseded_by: str | None = None  # JSON pointer such as "#/properties/newLocation"
    removal_version: str | None = None


@dataclass
class SchemaNode:
    """One node of the schema graph."""

    kind: SchemaKind

    # Location in the source document (for error messages)
    source_path: str = ""

    # Common annotations
    title: str | None = None
    description: str | None = None
    format: str | None = None
    category: str | None = None
    deprecation: DeprecationNotice | None = None

    # Enum values (primitive and object variants)
    enum: list[Any] | None = None

    # Object variant
    properties: dict[str, SchemaNode] = field(default_factory=dict)
    required: list[str] = field(default_factory=list)
    one_of: list[SchemaNode] = field(default_factory=list)
    map_value: SchemaNode | None = None
    map_source: MapSource | None = None
    map_key_pattern: str | None = None  # Key pattern of a patternProperties map

    # Array variant
    items: SchemaNode | None = None

    # Canonical raw JSON, used for structural fingerprints
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        if self.kind != SchemaKind.OBJECT and (self.properties or self.one_of or self.map_value is not None):
            raise ValueError(f"{self.kind.value} node at '{self.source_path}' cannot carry object fields")
        if self.kind != SchemaKind.ARRAY and self.items is not None:
            raise ValueError(f"{self.kind.value} node at '{self.source_path}' cannot carry array items")
        if self.enum is not None and self.kind in (SchemaKind.ARRAY, SchemaKind.NULL):
            raise ValueError(f"{self.kind.value} node at '{self.source_path}' cannot carry enum values")
        if (self.map_value is None) != (self.map_source is None):
            raise ValueError(f"Map node at '{self.source_path}' needs both a value schema and its source")

    @property
    def is_map(self) -> bool:
        return self.map_value is not None

    @property
    def has_enum(self) -> bool:
        return bool(self.enum)

    @property
    def fingerprint(self) -> str:
        """Canonical serialization of the schema, used to compare same-named types."""
        return json.dumps(self.raw, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


@dataclass
class ActionModel:
    """An action affordance of a Thing Model."""

    name: str
    title: str | None = None
    description: str | None = None
    input: SchemaNode | None = None
    output: SchemaNode | None = None
    deprecation: DeprecationNotice | None = None


class LinkRelation(str, Enum):
    """Link relation types the generator follows."""

    EXTENDS = "tm:extends"
    SUBMODEL = "tm:submodel"


@dataclass
class Link:
    """A link of a Thing Model."""

    href: str
    rel: str | None = None
    instance_name: str | None = None

    @property
    def is_submodel(self) -> bool:
        return self.rel == LinkRelation.SUBMODEL.value

    @property
    def is_extends(self) -> bool:
        return self.rel == LinkRelation.EXTENDS.value


@dataclass
class ThingModel:
    """A parsed Thing Model document."""

    title: str
    url: str = ""
    description: str | None = None
    properties: dict[str, SchemaNode] = field(default_factory=dict)
    actions: dict[str, ActionModel] = field(default_factory=dict)
    links: list[Link] = field(default_factory=list)

    @property
    def submodel_links(self) -> list[Link]:
        return [link for link in self.links if link.is_submodel]
