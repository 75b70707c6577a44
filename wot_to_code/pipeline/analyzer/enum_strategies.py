"""
Wrapper-type policies: decide whether a schema becomes a bare primitive or a
generated enum, and where generated enums are placed.

One policy exists per enum placement. The type resolver consults the policy
for every primitive-typed node and for object nodes carrying enum values.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from ..config import EnumPlacement
from ..errors import MalformedSchemaError
from ..schema_ast.nodes import SchemaKind, SchemaNode
from .context import NamingContext
from .ir_nodes import EnumConstant, EnumDescriptor, TypeRef, primitive
from .name_resolver import as_class_name, as_enum_constant, as_screaming_snake_case, unique_name
from .registry import EnumRegistry, enum_fingerprint

logger = logging.getLogger(__name__)

DATE_TIME_FORMAT = "date-time"


def primitive_type(node: SchemaNode) -> TypeRef:
    """Map a primitive schema node to its IR primitive."""
    if node.kind == SchemaKind.STRING and (node.format or "").lower() == DATE_TIME_FORMAT:
        return primitive(DATE_TIME_FORMAT)
    return primitive(node.kind.value)


def enum_name_for(field_name: str | None, context: NamingContext) -> str:
    """Field name first, then "<parent>Item", then "Item"."""
    if field_name:
        return as_class_name(field_name)
    if context.parent_class_name:
        return as_class_name(f"{context.parent_class_name}Item")
    return "Item"


class WrapperTypePolicy(ABC):
    """Turns enum-carrying schemas into enum types."""

    placement: EnumPlacement

    def __init__(self, registry: EnumRegistry):
        self.registry = registry

    def wrap(self, node: SchemaNode, field_name: str | None, package: str, context: NamingContext) -> TypeRef:
        """
        Resolve a primitive node, or any node with enum values.

        Args:
            node: The schema node
            field_name: Name of the field being resolved, if any
            package: Package of the owning class
            context: Current naming context

        Returns:
            A primitive type, or a reference to the generated enum
        """
        if not node.has_enum:
            return primitive_type(node)
        descriptor = self.build_enum(node, enum_name_for(field_name, context))
        return self.place(descriptor, package)

    @abstractmethod
    def place(self, descriptor: EnumDescriptor, package: str) -> TypeRef:
        """Register the enum and return the reference to use for it."""

    def build_enum(self, node: SchemaNode, name: str) -> EnumDescriptor:
        """Build the descriptor of the enum carried by node."""
        values = list(node.enum or [])
        value_type = node.kind.value
        constants: list[EnumConstant] = []
        taken: set[str] = set()

        for index, value in enumerate(values):
            if node.kind == SchemaKind.OBJECT:
                if not isinstance(value, dict):
                    raise MalformedSchemaError(node.source_path, f"object enum value {value!r} is not an object")
                constant_name = as_enum_constant(value.get("name", index))
            else:
                constant_name = as_enum_constant(value)
            constant_name = unique_name(constant_name, taken)
            taken.add(constant_name)
            constants.append(EnumConstant(name=constant_name, value=value))

        return EnumDescriptor(
            name=name,
            constants=constants,
            value_type=value_type,
            fingerprint=enum_fingerprint(values, value_type),
            description=node.description,
        )

    def build_action_enum(self, owner_class_name: str, action_names: list[str], package: str) -> TypeRef:
        """Generate the "<Owner>Action" enum of action names, always as its own module."""
        constants = [EnumConstant(name=as_screaming_snake_case(action), value=action) for action in action_names]
        descriptor = EnumDescriptor(
            name=f"{as_class_name(owner_class_name)}Action",
            constants=constants,
            value_type=SchemaKind.STRING.value,
            fingerprint=enum_fingerprint(action_names, SchemaKind.STRING.value),
            description=f"Actions of {owner_class_name}.",
        )
        key = self.registry.register_separate(package, descriptor)
        return self.registry.get(key).type_ref


class InlineEnumPolicy(WrapperTypePolicy):
    """Enums nested in their owning class; the last registration of a name wins."""

    placement = EnumPlacement.INLINE

    def place(self, descriptor: EnumDescriptor, package: str) -> TypeRef:
        self.registry.register_inline(descriptor)
        return descriptor.type_ref


class SeparateEnumPolicy(WrapperTypePolicy):
    """Enums in their own module; same-named enums must carry the same values."""

    placement = EnumPlacement.SEPARATE

    def place(self, descriptor: EnumDescriptor, package: str) -> TypeRef:
        key = self.registry.register_separate(package, descriptor)
        return self.registry.get(key).type_ref


_POLICIES: dict[EnumPlacement, type[WrapperTypePolicy]] = {
    EnumPlacement.INLINE: InlineEnumPolicy,
    EnumPlacement.SEPARATE: SeparateEnumPolicy,
}


def create_wrapper_policy(placement: EnumPlacement, registry: EnumRegistry) -> WrapperTypePolicy:
    """Create the wrapper-type policy for an enum placement."""
    logger.info(f"Using enum placement: {placement.value}")
    return _POLICIES[placement](registry)
