"""
Analyzer module.

Inlines model references, resolves schema nodes to IR types and keeps the
per-run class and enum registries.
"""

from __future__ import annotations

from .categories import CategoryPartition, group_by_category
from .context import NamingContext, Role
from .ir_nodes import (
    ActionInterface,
    CategoryMarker,
    ClassDescriptor,
    ClassKind,
    EnumConstant,
    EnumDescriptor,
    FieldDef,
    GenerationResult,
    TypeAlias,
    TypeKind,
    TypeRef,
)
from .reference_resolver import ReferenceResolver
from .registry import ClassRegistry, EnumRegistry
from .session import GenerationSession
from .type_resolver import TypeResolver

__all__ = [
    "ActionInterface",
    "CategoryMarker",
    "CategoryPartition",
    "ClassDescriptor",
    "ClassKind",
    "ClassRegistry",
    "EnumConstant",
    "EnumDescriptor",
    "EnumRegistry",
    "FieldDef",
    "GenerationResult",
    "GenerationSession",
    "NamingContext",
    "ReferenceResolver",
    "Role",
    "TypeAlias",
    "TypeKind",
    "TypeRef",
    "TypeResolver",
    "group_by_category",
]
