"""
Schema graph module.

Contains the schema node definitions and the Thing Model parser.
"""

from __future__ import annotations

from .nodes import (
    ActionModel,
    DeprecationNotice,
    Link,
    LinkRelation,
    MapSource,
    SchemaKind,
    SchemaNode,
    ThingModel,
)
from .parser import ThingModelParser

__all__ = [
    "SchemaKind",
    "SchemaNode",
    "MapSource",
    "DeprecationNotice",
    "ActionModel",
    "Link",
    "LinkRelation",
    "ThingModel",
    "ThingModelParser",
]
