"""
Type resolver: maps schema nodes to resolved type references.

Resolution is recursive. Object schemas generate (or reuse) classes through
the class registry, enum-carrying schemas go through the run's wrapper-type
policy, arrays and maps wrap the resolution of their item schema.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection, Mapping

from ..errors import UnsupportedSchemaError
from ..schema_ast.nodes import DeprecationNotice, MapSource, SchemaKind, SchemaNode
from .context import NamingContext, Role
from .ir_nodes import UNIT, ClassDescriptor, ClassKind, FieldDef, TypeKind, TypeRef, list_of
from .name_resolver import as_class_name, as_class_name_with_policy, as_property_name, unique_name
from .session import GenerationSession

logger = logging.getLogger(__name__)

# Prefix for renamed classes when neither a parent nor a feature is available
SHARED_PREFIX = "Shared"

# Roles whose classes are addressed by a JSON path of their own
_PATH_ROLES = (Role.ATTRIBUTE, Role.FEATURE_PROPERTY)

Handler = Callable[[SchemaNode, str, NamingContext, "str | None"], TypeRef]


def deprecation_message(notice: DeprecationNotice | None) -> str | None:
    """Message such as "Use newLocation instead. Will be removed in version 2.0." for a deprecation notice."""
    if notice is None:
        return None
    parts = []
    pointer = notice.superseded_by
    target = pointer.rsplit("/", 1)[-1] if pointer and pointer.startswith("#/") else ""
    if target:
        parts.append(f"Use {as_property_name(target)} instead.")
    else:
        parts.append("This element is deprecated.")
    if notice.removal_version:
        parts.append(f"Will be removed in version {notice.removal_version}.")
    return " ".join(parts)


def map_description(node: SchemaNode) -> str:
    """Docstring of a map wrapper whose schema has no description."""
    if node.map_source == MapSource.PATTERN_PROPERTIES:
        return f"Entries keyed by names matching {node.map_key_pattern}."
    return "Entries keyed by any name."


class TypeResolver:
    """Resolves schema nodes to TypeRefs, generating classes, enums and aliases."""

    def __init__(self, session: GenerationSession):
        """
        Initialize the resolver.

        Args:
            session: State of the current generation run
        """
        self.session = session
        self._handlers: dict[SchemaKind, Handler] = {
            SchemaKind.BOOLEAN: self._resolve_primitive,
            SchemaKind.INTEGER: self._resolve_primitive,
            SchemaKind.NUMBER: self._resolve_primitive,
            SchemaKind.STRING: self._resolve_primitive,
            SchemaKind.OBJECT: self._resolve_object,
            SchemaKind.ARRAY: self._resolve_array,
            SchemaKind.NULL: self._resolve_null,
        }
        missing = set(SchemaKind) - set(self._handlers)
        if missing:
            raise TypeError(f"No type resolution for schema kinds: {sorted(k.value for k in missing)}")

    @property
    def config(self):
        return self.session.config

    def resolve(self, node: SchemaNode, package: str, context: NamingContext, field_name: str | None = None) -> TypeRef:
        """
        Resolve a schema node to a type reference.

        Args:
            node: The schema node
            package: Package receiving any generated type
            context: Parent class, role and enclosing feature
            field_name: Name of the field being resolved; takes precedence over the title

        Returns:
            The resolved type reference

        Raises:
            UnsupportedSchemaError: If nesting exceeds the configured maximum depth
            EnumConflictError: On a structural enum conflict under separate placement
        """
        if context.depth > self.config.max_depth:
            raise UnsupportedSchemaError(f"Schema nesting exceeds maximum depth {self.config.max_depth} at '{node.source_path}'")
        return self._handlers[node.kind](node, package, context, field_name)

    def _resolve_primitive(self, node: SchemaNode, package: str, context: NamingContext, field_name: str | None) -> TypeRef:
        return self.session.wrapper_policy.wrap(node, field_name, package, context)

    def _resolve_null(self, node: SchemaNode, package: str, context: NamingContext, field_name: str | None) -> TypeRef:
        return TypeRef(kind=UNIT.kind, name=UNIT.name, is_nullable=True)

    def _resolve_object(self, node: SchemaNode, package: str, context: NamingContext, field_name: str | None) -> TypeRef:
        if node.has_enum:
            return self.session.wrapper_policy.wrap(node, field_name, package, context)
        if node.one_of:
            return self._resolve_one_of(node, package, context, field_name)
        return self.generate_class(node, self._schema_name(node, context, field_name), package, context)

    def _resolve_array(self, node: SchemaNode, package: str, context: NamingContext, field_name: str | None) -> TypeRef:
        array_name = self._schema_name(node, context, field_name)
        item = node.items
        if item.kind == SchemaKind.ARRAY:
            item_ref = self._resolve_array(item, package, context.nested(), f"{array_name}Array")
        else:
            item_context = context.descend(parent_class_name=as_class_name(array_name))
            item_ref = self.resolve(item, package, item_context, f"{array_name}Item")
        return list_of(item_ref)

    def _schema_name(self, node: SchemaNode, context: NamingContext, field_name: str | None) -> str:
        """Field name first, the schema title as fallback."""
        if field_name:
            return field_name
        if node.title:
            return node.title
        if context.parent_class_name:
            return f"{context.parent_class_name}Item"
        return "Item"

    def _resolve_one_of(self, node: SchemaNode, package: str, context: NamingContext, field_name: str | None) -> TypeRef:
        """
        Resolve an object whose value is one of several alternatives.

        Alternatives that each hold exactly one primitive property become
        aliases of that primitive; otherwise every alternative becomes a class
        extending a sealed base named after the object.
        """
        base_name = self._schema_name(node, context, field_name)
        child_context = context.descend()

        if not node.properties and all(self._is_single_primitive(alt) for alt in node.one_of):
            members = []
            for alternative in node.one_of:
                property_name, property_node = next(iter(alternative.properties.items()))
                target = self.session.wrapper_policy.wrap(property_node, property_name, package, child_context)
                members.append(self.session.add_alias(package, as_class_name(property_name), target))
            return TypeRef(kind=TypeKind.UNION, name=as_class_name(base_name), type_args=members)

        sealed_ref = self.generate_class(node, base_name, package, context, kind=ClassKind.SEALED)
        for index, alternative in enumerate(node.one_of):
            if alternative.kind != SchemaKind.OBJECT:
                raise UnsupportedSchemaError(
                    f"oneOf alternative at '{alternative.source_path}' must be an object when alternatives become classes"
                )
            alternative_name = alternative.title or next(iter(alternative.properties), None) or f"{base_name}Option{index + 1}"
            self.generate_class(alternative, alternative_name, package, child_context, base_classes=[sealed_ref])
        return sealed_ref

    def _is_single_primitive(self, alternative: SchemaNode) -> bool:
        if alternative.kind != SchemaKind.OBJECT or len(alternative.properties) != 1:
            return False
        (property_node,) = alternative.properties.values()
        return property_node.kind.is_primitive

    def generate_class(
        self,
        node: SchemaNode,
        name: str,
        package: str,
        context: NamingContext,
        kind: ClassKind = ClassKind.DATA,
        base_classes: list[TypeRef] | None = None,
    ) -> TypeRef:
        """
        Generate, or reuse, the class for an object schema.

        Args:
            node: The object schema
            name: Field name or title the class is named after
            package: Package of the class
            context: Naming context of the schema
            kind: DATA for plain objects, SEALED for oneOf bases
            base_classes: Base classes (for oneOf alternatives)

        Returns:
            Reference to the generated class
        """
        class_registry = self.session.class_registry
        fingerprint = node.fingerprint
        if kind == ClassKind.SEALED:
            fingerprint = f"sealed:{fingerprint}"

        requested = as_class_name_with_policy(
            name,
            context.parent_class_name,
            self.config.naming_policy,
            class_registry.conflicting_names(package, fingerprint),
        )
        class_name = self._resolve_conflict(requested, name, package, fingerprint, context)

        if class_registry.has_class(package, class_name):
            existing = class_registry.get(package, class_name)
            # A reused shape still extends every sealed base it is an alternative of
            for base in base_classes or []:
                if existing is not None and base not in existing.base_classes:
                    existing.base_classes.append(base)
            return TypeRef(kind=TypeKind.CLASS, name=class_name, package=package)

        registration = class_registry.register(package, class_name, fingerprint, requested_name=requested)
        if registration.was_renamed:
            logger.warning(f"Class name conflict for '{requested}' in package '{package}'. Using new name '{class_name}'")
        logger.debug(f"Generating class {class_name} in package {package} (role: {context.role.value})")

        descriptor = ClassDescriptor(
            package=package,
            name=class_name,
            fingerprint=fingerprint,
            kind=kind,
            description=node.description,
            base_classes=list(base_classes or []),
        )
        if context.role in _PATH_ROLES and name:
            descriptor.start_path = name

        child_context = context.descend(parent_class_name=class_name)
        if node.is_map:
            descriptor.kind = ClassKind.MAP_WRAPPER
            descriptor.description = descriptor.description or map_description(node)
            descriptor.map_value = self._resolve_map_value(node, class_name, package, child_context)
            if node.properties:
                logger.warning(f"Properties of map schema '{node.source_path}' are not generated, only its value schema")
        else:
            descriptor.fields = self.resolve_fields(node.properties, package, child_context, node.required)

        class_registry.add(descriptor)
        return descriptor.type_ref

    def _resolve_conflict(self, requested: str, name: str, package: str, fingerprint: str, context: NamingContext) -> str:
        """Rename a class whose name is taken by a different shape."""
        class_registry = self.session.class_registry
        if not class_registry.has_conflict(package, requested, fingerprint):
            return requested

        base = as_class_name(name)
        prefixes = [as_class_name(p) for p in (context.parent_class_name, context.feature) if p]
        for prefix in [*prefixes, SHARED_PREFIX]:
            candidate = f"{prefix}{base}"
            if candidate != requested and not class_registry.has_conflict(package, candidate, fingerprint):
                return candidate

        candidate = f"{SHARED_PREFIX}{base}"
        return unique_name(candidate, class_registry.conflicting_names(package, fingerprint))

    def _resolve_map_value(self, node: SchemaNode, class_name: str, package: str, context: NamingContext) -> TypeRef:
        """Resolve the "<Class>Item" value type of a map-shaped object."""
        item_name = f"{class_name}Item"
        value_ref = self.resolve(node.map_value, package, context, item_name)
        if value_ref.kind == TypeKind.PRIMITIVE:
            return self.session.add_alias(package, item_name, value_ref)
        return value_ref

    def resolve_fields(
        self,
        properties: Mapping[str, SchemaNode],
        package: str,
        context: NamingContext,
        required: Collection[str] = (),
    ) -> list[FieldDef]:
        """Resolve every property into a field, in document order."""
        fields = []
        for property_name, property_node in properties.items():
            fields.append(
                FieldDef(
                    name=as_property_name(property_name),
                    json_name=property_name,
                    type_ref=self.resolve(property_node, package, context, property_name),
                    is_required=property_name in required,
                    description=property_node.description,
                    comment=deprecation_message(property_node.deprecation),
                )
            )
        return fields
