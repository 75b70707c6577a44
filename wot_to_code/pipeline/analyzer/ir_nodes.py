"""
IR (Intermediate Representation) node definitions.

These nodes represent the resolved type graph of a Thing Model, ready for
code generation. All references are inlined, every generated type has its
final name and package.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TypeKind(Enum):
    """Kind of type in the IR."""

    PRIMITIVE = "primitive"  # boolean, integer, number, string, date-time
    CLASS = "class"  # A generated class
    ENUM = "enum"  # A generated enum
    LIST = "list"  # list[T]
    MAP = "map"  # dict[str, T]
    ALIAS = "alias"  # Reference to a generated type alias
    UNION = "union"  # T | U | ...
    UNIT = "unit"  # No value (None)


@dataclass
class TypeRef:
    """A resolved type reference."""

    kind: TypeKind = TypeKind.PRIMITIVE
    name: str = ""  # Schema-level primitive name or generated type name

    # Package of a generated type; None for builtins and inline enums
    package: str | None = None

    # For container types (list item, map value, union members, alias target)
    type_args: list[TypeRef] = field(default_factory=list)

    # Whether this is a nullable type
    is_nullable: bool = False

    # Inline enums: the descriptor resolved for this reference, nested in the owning class
    enum_def: EnumDescriptor | None = field(default=None, repr=False)

    @property
    def qualified_name(self) -> str:
        return f"{self.package}.{self.name}" if self.package else self.name

    @property
    def is_generated(self) -> bool:
        """Whether the type lives in a generated module of its own."""
        return self.package is not None and self.kind in (TypeKind.CLASS, TypeKind.ENUM, TypeKind.ALIAS)

    @property
    def is_inline_enum(self) -> bool:
        return self.kind == TypeKind.ENUM and self.package is None

    def walk(self) -> Iterator[TypeRef]:
        """Yield this reference and every nested type argument, depth-first."""
        yield self
        for arg in self.type_args:
            yield from arg.walk()


def primitive(name: str) -> TypeRef:
    return TypeRef(kind=TypeKind.PRIMITIVE, name=name)


def list_of(item: TypeRef) -> TypeRef:
    return TypeRef(kind=TypeKind.LIST, name="list", type_args=[item])


def map_of(value: TypeRef) -> TypeRef:
    return TypeRef(kind=TypeKind.MAP, name="dict", type_args=[primitive("string"), value])


UNIT = TypeRef(kind=TypeKind.UNIT, name="null", is_nullable=True)


class ClassKind(Enum):
    """Shape of a generated class."""

    PLAIN = "plain"  # Container assembled by the orchestrator
    DATA = "data"  # Generated from an object schema
    MAP_WRAPPER = "map_wrapper"  # dict[str, Item] subclass
    SEALED = "sealed"  # Common base of oneOf alternative classes


@dataclass
class FieldDef:
    """A field definition in a class."""

    name: str = ""
    json_name: str = ""  # Original JSON property name
    type_ref: TypeRef | None = None
    is_required: bool = False
    description: str | None = None

    # Comment to add above the field (deprecation notice)
    comment: str | None = None

    @property
    def is_renamed(self) -> bool:
        return self.name != self.json_name


@dataclass
class ClassDescriptor:
    """A generated class."""

    package: str = ""
    name: str = ""
    fingerprint: str = ""
    fields: list[FieldDef] = field(default_factory=list)
    kind: ClassKind = ClassKind.DATA
    description: str | None = None

    # Base classes (sealed bases, category markers)
    base_classes: list[TypeRef] = field(default_factory=list)

    # Value type of a map wrapper
    map_value: TypeRef | None = None

    # JSON path segment of top-level attribute/feature property classes
    start_path: str | None = None

    # Class-level constants, name -> string value
    class_vars: dict[str, str] = field(default_factory=dict)

    @property
    def type_ref(self) -> TypeRef:
        return TypeRef(kind=TypeKind.CLASS, name=self.name, package=self.package)

    @property
    def is_buildable(self) -> bool:
        """Whether the class can be instantiated without arguments."""
        return self.kind in (ClassKind.PLAIN, ClassKind.DATA) and not any(f.is_required for f in self.fields)

    def referenced_types(self) -> Iterator[TypeRef]:
        for base in self.base_classes:
            yield from base.walk()
        if self.map_value is not None:
            yield from self.map_value.walk()
        for field_def in self.fields:
            if field_def.type_ref is not None:
                yield from field_def.type_ref.walk()


@dataclass
class EnumConstant:
    """One enum constant and the JSON value it stands for."""

    name: str = ""
    value: Any = None


@dataclass
class EnumDescriptor:
    """A generated enum."""

    name: str = ""
    constants: list[EnumConstant] = field(default_factory=list)
    value_type: str = "string"  # "string", "integer", "number", "boolean" or "object"
    fingerprint: str = ""
    description: str | None = None

    # Owning package for separate placement; None when nested in its owner class
    package: str | None = None

    @property
    def values(self) -> list[Any]:
        return [constant.value for constant in self.constants]

    @property
    def type_ref(self) -> TypeRef:
        return TypeRef(kind=TypeKind.ENUM, name=self.name, package=self.package, enum_def=None if self.package else self)


@dataclass
class TypeAlias:
    """A type alias definition."""

    package: str = ""
    name: str = ""
    target: TypeRef | None = None

    @property
    def type_ref(self) -> TypeRef:
        return TypeRef(kind=TypeKind.ALIAS, name=self.name, package=self.package, type_args=[self.target] if self.target else [])


@dataclass
class ActionInterface:
    """An abstract interface with one method per Thing Model action."""

    package: str = ""
    name: str = ""
    method_name: str = ""
    action_name: str = ""  # Original action name
    input: TypeRef | None = None
    output: TypeRef | None = None
    description: str | None = None
    deprecation_message: str | None = None

    def referenced_types(self) -> Iterator[TypeRef]:
        for type_ref in (self.input, self.output):
            if type_ref is not None:
                yield from type_ref.walk()


@dataclass
class CategoryMarker:
    """Marker interface implemented by every class of one property category."""

    package: str = ""
    name: str = ""
    category: str = ""

    @property
    def type_ref(self) -> TypeRef:
        return TypeRef(kind=TypeKind.CLASS, name=self.name, package=self.package)


@dataclass
class GenerationResult:
    """Complete resolved output of one generation run."""

    model_name: str = ""
    root_package: str = ""
    model_url: str = ""

    classes: list[ClassDescriptor] = field(default_factory=list)
    enums: list[EnumDescriptor] = field(default_factory=list)  # Separately placed enums
    aliases: list[TypeAlias] = field(default_factory=list)
    interfaces: list[ActionInterface] = field(default_factory=list)
    markers: list[CategoryMarker] = field(default_factory=list)

    # Inline enums by name (last registration wins); owners render the descriptor on their own references
    inline_enums: dict[str, EnumDescriptor] = field(default_factory=dict)

    # Files written by the run
    written_files: list[str] = field(default_factory=list)

    def find_class(self, name: str, package: str | None = None) -> ClassDescriptor | None:
        for class_def in self.classes:
            if class_def.name == name and (package is None or class_def.package == package):
                return class_def
        return None

    def find_enum(self, name: str, package: str | None = None) -> EnumDescriptor | None:
        for enum_def in self.enums:
            if enum_def.name == name and (package is None or enum_def.package == package):
                return enum_def
        return self.inline_enums.get(name) if package is None else None

    def find_alias(self, name: str) -> TypeAlias | None:
        return next((alias for alias in self.aliases if alias.name == name), None)

    @property
    def packages(self) -> set[str]:
        """Every package that receives at least one module."""
        packages = {self.root_package}
        for item in (*self.classes, *self.enums, *self.aliases, *self.interfaces, *self.markers):
            if item.package:
                packages.add(item.package)
        return packages
