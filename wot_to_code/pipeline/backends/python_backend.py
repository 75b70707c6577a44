"""
Python code generation backend.

Generates one Python module per generated class, enum, type alias, action
interface and category marker, plus an __init__.py per package.
"""

from __future__ import annotations

import collections
import json
import keyword
from collections.abc import Iterable
from typing import Any

from ...utils import to_snake_case
from ..analyzer.ir_nodes import (
    ActionInterface,
    CategoryMarker,
    ClassDescriptor,
    ClassKind,
    EnumDescriptor,
    FieldDef,
    GenerationResult,
    TypeAlias,
    TypeKind,
    TypeRef,
)
from ..analyzer.name_resolver import as_class_name
from ..config import GeneratorConfig
from .base import CodeBackend, RenderedModule

# Standard library modules generated code imports from
STDLIB_MODULES = {"abc", "collections.abc", "dataclasses", "datetime", "enum", "typing"}

# Third-party modules generated code imports from
THIRD_PARTY_MODULES = {"dataclasses_json"}


def format_literal(value: Any) -> str:
    """Format a JSON value as a Python literal."""
    if value is None:
        return "None"
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, list):
        return "[" + ", ".join(format_literal(item) for item in value) + "]"
    if isinstance(value, dict):
        return "{" + ", ".join(f"{format_literal(str(k))}: {format_literal(v)}" for k, v in value.items()) + "}"
    return format_literal(str(value))


def format_docstring(text: str) -> str:
    """Triple-quoted docstring for arbitrary text."""
    escaped = text.strip().replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    if escaped.endswith('"'):
        escaped += " "
    return f'"""{escaped}"""'


def comment_lines(*texts: str | None) -> list[str]:
    """Split texts into single comment lines."""
    lines = []
    for text in texts:
        if text:
            lines.extend(line.strip() for line in text.strip().splitlines() if line.strip())
    return lines


class PythonBackend(CodeBackend):
    """Python code generation backend."""

    TEMPLATE_LANG = "python"
    FILE_EXTENSION = "py"

    TYPE_MAP = {
        "boolean": "bool",
        "integer": "int",
        "number": "float",
        "string": "str",
        "date-time": "datetime",
        "null": "None",
    }

    # Mixin type of generated enums, by backing value type
    ENUM_MIXINS = {
        "string": "str",
        "integer": "int",
        "number": "float",
    }

    def __init__(self, config: GeneratorConfig, generation_comment: str = ""):
        super().__init__(config, generation_comment)
        self.python_imports: set[tuple[str, str]] = set()
        # (package, name) of the module being rendered
        self._current: tuple[str, str] = ("", "")
        # Local name -> module path of generated types imported by the current module
        self._local_names: dict[str, str] = {}
        # Class qualifying inline enums nested in it; None renders them at module level
        self._enum_owner: str | None = None
        # (package, name) of sealed bases with required fields
        self._sealed_required: set[tuple[str, str]] = set()

    def render(self, result: GenerationResult) -> list[RenderedModule]:
        """Render one module per generated type, then the package initializers."""
        self._sealed_required = {
            (c.package, c.name) for c in result.classes if c.kind == ClassKind.SEALED and any(f.is_required for f in c.fields)
        }

        modules = []
        for class_def in result.classes:
            modules.append(self._render_class_module(class_def))
        for enum_def in result.enums:
            modules.append(self._render_enum_module(enum_def))
        for alias in result.aliases:
            modules.append(self._render_alias_module(alias))
        for interface in result.interfaces:
            modules.append(self._render_interface_module(interface))
        for marker in result.markers:
            modules.append(self._render_marker_module(marker))
        modules.extend(self._render_package_inits(result))
        return modules

    def translate_type(self, type_ref: TypeRef) -> str:
        """Translate IR type to Python type string."""
        result = self._translate_type_inner(type_ref)
        if type_ref.is_nullable and result != "None" and not result.endswith(" | None"):
            result = f"{result} | None"
        return result

    def _translate_type_inner(self, type_ref: TypeRef) -> str:
        if type_ref.kind == TypeKind.PRIMITIVE:
            if type_ref.name == "date-time":
                self.python_imports.add(("datetime", "datetime"))
            return self.TYPE_MAP.get(type_ref.name, type_ref.name)

        if type_ref.kind == TypeKind.UNIT:
            return "None"

        if type_ref.kind == TypeKind.LIST:
            return f"list[{self.translate_type(type_ref.type_args[0])}]"

        if type_ref.kind == TypeKind.MAP:
            return f"dict[str, {self.translate_type(type_ref.type_args[-1])}]"

        if type_ref.kind == TypeKind.UNION:
            return " | ".join(self.translate_type(member) for member in type_ref.type_args)

        if type_ref.is_inline_enum:
            return f"{self._enum_owner}.{type_ref.name}" if self._enum_owner else type_ref.name

        return self._import_generated(type_ref)

    def _import_generated(self, type_ref: TypeRef) -> str:
        """Import a generated type into the current module and return its local name."""
        if (type_ref.package, type_ref.name) == self._current:
            return type_ref.name

        module_path = f"{type_ref.package}.{type_ref.name}"
        local_name = type_ref.name
        existing = self._local_names.get(local_name)
        if local_name == self._current[1] or (existing is not None and existing != module_path):
            # Same simple name from another package: qualify with the last package segment
            local_name = f"{as_class_name(type_ref.package.rsplit('.', 1)[-1])}{type_ref.name}"

        self._local_names[local_name] = module_path
        imported = type_ref.name if local_name == type_ref.name else f"{type_ref.name} as {local_name}"
        self.python_imports.add((module_path, imported))
        return local_name

    def _start_module(self, package: str, name: str, enum_owner: str | None = None) -> None:
        """Reset import tracking for a new module."""
        self.python_imports = {("__future__", "annotations")}
        self._current = (package, name)
        self._local_names = {}
        self._enum_owner = enum_owner

    def _finish_module(self, blocks: Iterable[str]) -> RenderedModule:
        package, name = self._current
        content = self.get_template("module").render(
            generation_comment=self.generation_comment,
            imports=self._assemble_imports(),
            body="\n\n\n".join(block for block in blocks if block),
        )
        return RenderedModule(package=package, name=name, content=content.rstrip("\n") + "\n")

    def _inline_enums_of(self, type_refs: Iterable[TypeRef]) -> list[EnumDescriptor]:
        """Inline enums as resolved for type_refs, in first-seen order."""
        enums: dict[str, EnumDescriptor] = {}
        for type_ref in type_refs:
            if type_ref.is_inline_enum and type_ref.enum_def is not None:
                enums.setdefault(type_ref.name, type_ref.enum_def)
        return list(enums.values())

    # Classes

    def _render_class_module(self, class_def: ClassDescriptor) -> RenderedModule:
        nests_enums = class_def.kind != ClassKind.MAP_WRAPPER
        self._start_module(class_def.package, class_def.name, class_def.name if nests_enums else None)

        enums = [self._render_enum(enum_def) for enum_def in self._inline_enums_of(class_def.referenced_types())]
        class_ctx = self._prepare_class_context(class_def, enums if nests_enums else [])
        blocks = [] if nests_enums else list(enums)
        blocks.append(self.get_template("class").render(class_ctx))
        if self.config.generate_dsl and self._is_buildable(class_def):
            blocks.append(self._render_builder(class_def))
        return self._finish_module(blocks)

    def _prepare_class_context(self, class_def: ClassDescriptor, nested_enums: list[str]) -> dict[str, Any]:
        """
        Prepare the template context for a class.

        Args:
            class_def: The class definition
            nested_enums: Rendered inline enums to nest in the class body

        Returns:
            Dictionary of template variables
        """
        bases = [self.translate_type(base) for base in class_def.base_classes]
        decorators = []
        if class_def.kind == ClassKind.MAP_WRAPPER:
            bases = [f"dict[str, {self.translate_type(class_def.map_value)}]"]
        else:
            self.python_imports.add(("dataclasses", "dataclass"))
            self.python_imports.add(("dataclasses_json", "dataclass_json"))
            decorators.append("@dataclass_json")
            # Keyword-only fields let subclasses add required fields after inherited optional ones
            if class_def.kind == ClassKind.SEALED or class_def.base_classes:
                decorators.append("@dataclass(kw_only=True)")
            else:
                decorators.append("@dataclass")

        sections = []
        if class_def.description:
            sections.append(format_docstring(class_def.description))

        class_vars = {}
        if class_def.start_path is not None:
            class_vars["START_PATH"] = class_def.start_path
        class_vars.update(class_def.class_vars)
        if class_vars:
            self.python_imports.add(("typing", "ClassVar"))
            sections.append("\n".join(f"{name}: ClassVar[str] = {format_literal(value)}" for name, value in class_vars.items()))

        sections.extend(nested_enums)

        if class_def.fields:
            field_template = self.get_template("field")
            rendered_fields = [field_template.render(self._prepare_field_context(f)) for f in self._order_fields(class_def.fields)]
            sections.append("\n".join(rendered_fields))

        return {
            "CLASS_NAME": class_def.name,
            "decorators": decorators,
            "bases": bases,
            "sections": sections,
        }

    def _order_fields(self, fields: list[FieldDef]) -> list[FieldDef]:
        """Required fields (without defaults) must come before optional fields."""
        required_fields = [f for f in fields if f.is_required]
        optional_fields = [f for f in fields if not f.is_required]
        return required_fields + optional_fields

    def _prepare_field_context(self, field_def: FieldDef) -> dict[str, Any]:
        """
        Prepare the template context for a field.

        Optional fields default to None; renamed fields map back to their
        JSON name through dataclasses_json field metadata.
        """
        type_str = self.translate_type(field_def.type_ref)

        metadata = None
        if field_def.is_renamed:
            self.python_imports.add(("dataclasses", "field"))
            self.python_imports.add(("dataclasses_json", "config"))
            metadata = f"config(field_name={format_literal(field_def.json_name)})"

        if field_def.is_required:
            init = f"field(metadata={metadata})" if metadata else None
        else:
            if type_str != "None" and not type_str.endswith(" | None"):
                type_str = f"{type_str} | None"
            init = f"field(default=None, metadata={metadata})" if metadata else "None"

        return {
            "name": field_def.name,
            "type": type_str,
            "init": init,
            "comments": comment_lines(field_def.description, field_def.comment),
        }

    def _is_buildable(self, class_def: ClassDescriptor) -> bool:
        """Whether ClassName() works, inherited fields included."""
        return class_def.is_buildable and not any((b.package, b.name) in self._sealed_required for b in class_def.base_classes)

    def _render_builder(self, class_def: ClassDescriptor) -> str:
        """Render the module-level builder function of a class."""
        self.python_imports.add(("collections.abc", "Callable"))
        if self.config.suspend_dsl:
            self.python_imports.add(("collections.abc", "Awaitable"))
            block_type = f"Callable[[{class_def.name}], Awaitable[None]]"
        else:
            block_type = f"Callable[[{class_def.name}], None]"

        return self.get_template("builder").render(
            name=self.builder_name(class_def.name),
            class_name=class_def.name,
            block_type=block_type,
            def_keyword="async def" if self.config.suspend_dsl else "def",
            call_prefix="await " if self.config.suspend_dsl else "",
        )

    @staticmethod
    def builder_name(class_name: str) -> str:
        """snake_case builder function name for a class."""
        name = to_snake_case(class_name)
        if not name.isidentifier():
            return f"build_{name}"
        if keyword.iskeyword(name):
            return f"{name}_"
        return name

    # Enums

    def _render_enum_module(self, enum_def: EnumDescriptor) -> RenderedModule:
        self._start_module(enum_def.package, enum_def.name)
        return self._finish_module([self._render_enum(enum_def)])

    def _render_enum(self, enum_def: EnumDescriptor) -> str:
        self.python_imports.add(("enum", "Enum"))
        mixin = self.ENUM_MIXINS.get(enum_def.value_type)
        return self.get_template("enum").render(
            name=enum_def.name,
            bases=[mixin, "Enum"] if mixin else ["Enum"],
            docstring=format_docstring(enum_def.description) if enum_def.description else None,
            constants=[{"name": c.name, "value": format_literal(c.value)} for c in enum_def.constants],
        )

    # Aliases

    def _render_alias_module(self, alias: TypeAlias) -> RenderedModule:
        self._start_module(alias.package, alias.name)
        blocks = [self._render_enum(enum_def) for enum_def in self._inline_enums_of(alias.target.walk())]
        blocks.append(self.get_template("alias").render(name=alias.name, target=self.translate_type(alias.target)))
        return self._finish_module(blocks)

    # Action interfaces

    def _render_interface_module(self, interface: ActionInterface) -> RenderedModule:
        self._start_module(interface.package, interface.name, interface.name)
        self.python_imports.add(("abc", "ABC"))
        self.python_imports.add(("abc", "abstractmethod"))
        self.python_imports.add(("typing", "ClassVar"))

        sections = []
        if interface.description:
            sections.append(format_docstring(interface.description))
        sections.append(f"ACTION_NAME: ClassVar[str] = {format_literal(interface.action_name)}")
        sections.extend(self._render_enum(e) for e in self._inline_enums_of(interface.referenced_types()))

        parameters = ""
        if interface.input is not None:
            parameters = f", payload: {self.translate_type(interface.input)}"
        returns = self.translate_type(interface.output) if interface.output is not None else "None"

        body = self.get_template("interface").render(
            name=interface.name,
            sections=sections,
            def_keyword="async def" if self.config.suspend_dsl else "def",
            method_name=interface.method_name,
            parameters=parameters,
            returns=returns,
            docstring=format_docstring(interface.deprecation_message) if interface.deprecation_message else None,
        )
        return self._finish_module([body])

    # Category markers

    def _render_marker_module(self, marker: CategoryMarker) -> RenderedModule:
        self._start_module(marker.package, marker.name)
        self.python_imports.add(("abc", "ABC"))
        body = self.get_template("marker").render(
            name=marker.name,
            docstring=format_docstring(f'Implemented by the property classes of category "{marker.category}".'),
        )
        return self._finish_module([body])

    # Packages

    def _render_package_inits(self, result: GenerationResult) -> list[RenderedModule]:
        """One __init__.py per package and per enclosing package."""
        packages = set()
        for package in result.packages:
            segments = package.split(".")
            packages.update(".".join(segments[: i + 1]) for i in range(len(segments)))

        template = self.get_template("init")
        modules = []
        for package in sorted(packages):
            description = f"Generated object model of {result.model_name}." if package == result.root_package else None
            content = template.render(generation_comment=self.generation_comment, docstring=format_docstring(description) if description else None)
            modules.append(RenderedModule(package=package, name="__init__", content=content.rstrip("\n") + "\n" if content.strip() else ""))
        return modules

    def _assemble_imports(self) -> list[str]:
        """Assemble Python import statements."""
        import_groups: dict[str, set[str]] = collections.defaultdict(set)
        for module, name in self.python_imports:
            import_groups[module].add(name)

        stdlib_groups = {m: import_groups[m] for m in import_groups if m in STDLIB_MODULES}
        third_party_groups = {m: import_groups[m] for m in import_groups if m in THIRD_PARTY_MODULES}
        local_groups = {m: import_groups[m] for m in import_groups if m not in STDLIB_MODULES | THIRD_PARTY_MODULES | {"__future__"}}

        assembled = []
        if "__future__" in import_groups:
            assembled.append(f"from __future__ import {', '.join(sorted(import_groups['__future__']))}")

        for groups in (stdlib_groups, third_party_groups, local_groups):
            if not groups:
                continue
            if assembled:
                assembled.append("")
            for module in sorted(groups):
                assembled.append(f"from {module} import {', '.join(sorted(groups[module]))}")

        return assembled
