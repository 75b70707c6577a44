import ast

import pytest

from wot_to_code.pipeline.analyzer.ir_nodes import (
    ActionInterface,
    ClassDescriptor,
    ClassKind,
    EnumConstant,
    EnumDescriptor,
    FieldDef,
    GenerationResult,
    TypeAlias,
    primitive,
)
from wot_to_code.pipeline.backends import PythonBackend
from wot_to_code.pipeline.backends.python_backend import format_docstring, format_literal
from wot_to_code.pipeline.config import GeneratorConfig
from wot_to_code.pipeline.errors import CodeValidationError

HEADER = "# Generated by wot_to_code from lamp.tm.jsonld"


def render(result, **config_values):
    backend = PythonBackend(GeneratorConfig(**config_values), HEADER)
    modules = backend.render_all(result)
    for module in modules:
        ast.parse(module.content)
    return {module.qualified_name: module.content for module in modules}


def mode_enum():
    return EnumDescriptor(
        name="Mode",
        constants=[EnumConstant(name="ECO", value="eco"), EnumConstant(name="NIGHT", value="night")],
        value_type="string",
    )


class TestFormatting:
    """Test cases for literal and docstring formatting"""

    def test_format_literal(self):
        assert format_literal(None) == "None"
        assert format_literal(True) == "True"
        assert format_literal(1.5) == "1.5"
        assert format_literal("lüx") == '"lüx"'
        assert format_literal({"name": "warm", "kelvin": [2700, None]}) == '{"name": "warm", "kelvin": [2700, None]}'

    def test_format_docstring(self):
        assert format_docstring("A lamp.") == '"""A lamp."""'
        assert format_docstring('Say "hi"') == '"""Say "hi" """'
        assert format_docstring('a """ b \\ c') == '"""a \\"\\"\\" b \\\\ c"""'

    @pytest.mark.parametrize(
        "class_name,expected",
        [("FloorLamp", "floor_lamp"), ("Class", "class_"), ("Status", "status")],
    )
    def test_builder_name(self, class_name, expected):
        assert PythonBackend.builder_name(class_name) == expected


class TestPythonBackend:
    """Test cases for rendering the IR into Python modules"""

    def test_class_with_nested_enum_and_renamed_field(self):
        lamp = ClassDescriptor(
            package="lamp",
            name="Lamp",
            kind=ClassKind.DATA,
            description="A lamp.",
            start_path="lamp",
            fields=[
                FieldDef(name="thingId", json_name="thing-id", type_ref=primitive("string"), is_required=True),
                FieldDef(name="mode", json_name="mode", type_ref=mode_enum().type_ref),
                FieldDef(name="since", json_name="since", type_ref=primitive("date-time"), comment="Use installedAt instead."),
            ],
        )
        modules = render(GenerationResult(model_name="Lamp", root_package="lamp", classes=[lamp]))
        content = modules["lamp.Lamp"]

        assert content.startswith(HEADER + "\n\nfrom __future__ import annotations\n")
        assert "from dataclasses import dataclass, field" in content
        assert "from datetime import datetime" in content
        assert "from dataclasses_json import config, dataclass_json" in content
        assert "@dataclass_json\n@dataclass\nclass Lamp:\n" in content
        assert '    """A lamp."""' in content
        assert '    START_PATH: ClassVar[str] = "lamp"' in content
        assert "    class Mode(str, Enum):" in content
        assert '        ECO = "eco"' in content
        assert '    thingId: str = field(metadata=config(field_name="thing-id"))' in content
        assert "    mode: Lamp.Mode | None = None" in content
        assert "    # Use installedAt instead.\n    since: datetime | None = None" in content
        # Required fields come first
        assert content.index("thingId:") < content.index("mode:")
        # Not buildable without arguments
        assert "def lamp(" not in content

    def test_same_named_inline_enums_keep_their_values(self):
        def mode_field(*values):
            enum_def = EnumDescriptor(name="Mode", constants=[EnumConstant(name=v.upper(), value=v) for v in values])
            return FieldDef(name="mode", json_name="mode", type_ref=enum_def.type_ref)

        fan = ClassDescriptor(package="lamp", name="Fan", fields=[mode_field("auto", "manual")])
        heater = ClassDescriptor(package="lamp", name="Heater", fields=[mode_field("fast", "slow")])
        modules = render(GenerationResult(model_name="Lamp", root_package="lamp", classes=[fan, heater]))

        assert '        AUTO = "auto"' in modules["lamp.Fan"]
        assert "FAST" not in modules["lamp.Fan"]
        assert '        FAST = "fast"' in modules["lamp.Heater"]
        assert "AUTO" not in modules["lamp.Heater"]

    def test_builder(self):
        point = ClassDescriptor(package="lamp", name="Point", fields=[FieldDef(name="x", json_name="x", type_ref=primitive("number"))])
        content = render(GenerationResult(model_name="Lamp", root_package="lamp", classes=[point]))["lamp.Point"]
        assert "def point(block: Callable[[Point], None]) -> Point:" in content
        assert "    instance = Point()\n    block(instance)\n    return instance" in content

    def test_async_builder(self):
        point = ClassDescriptor(package="lamp", name="Point", fields=[FieldDef(name="x", json_name="x", type_ref=primitive("number"))])
        content = render(GenerationResult(model_name="Lamp", root_package="lamp", classes=[point]), suspend_dsl=True)["lamp.Point"]
        assert "from collections.abc import Awaitable, Callable" in content
        assert "async def point(block: Callable[[Point], Awaitable[None]]) -> Point:" in content
        assert "    await block(instance)" in content

    def test_no_builder_without_dsl(self):
        point = ClassDescriptor(package="lamp", name="Point")
        content = render(GenerationResult(model_name="Lamp", root_package="lamp", classes=[point]), generate_dsl=False)["lamp.Point"]
        assert "def point" not in content
        assert "class Point:\n    pass" in content

    def test_same_name_import_is_aliased(self):
        other = ClassDescriptor(package="lamp.socket", name="Status")
        status = ClassDescriptor(
            package="lamp.light",
            name="Status",
            fields=[FieldDef(name="socket", json_name="socket", type_ref=other.type_ref)],
        )
        modules = render(GenerationResult(model_name="Lamp", root_package="lamp", classes=[other, status]))
        content = modules["lamp.light.Status"]
        assert "from lamp.socket.Status import Status as SocketStatus" in content
        assert "    socket: SocketStatus | None = None" in content

    def test_sealed_hierarchy(self):
        shape = ClassDescriptor(package="lamp", name="Shape", kind=ClassKind.SEALED)
        point = ClassDescriptor(
            package="lamp",
            name="Point",
            base_classes=[shape.type_ref],
            fields=[FieldDef(name="x", json_name="x", type_ref=primitive("number"), is_required=True)],
        )
        modules = render(GenerationResult(model_name="Lamp", root_package="lamp", classes=[shape, point]))
        assert "@dataclass(kw_only=True)\nclass Shape:" in modules["lamp.Shape"]
        assert "from lamp.Shape import Shape" in modules["lamp.Point"]
        assert "@dataclass(kw_only=True)\nclass Point(Shape):" in modules["lamp.Point"]

    def test_map_wrapper_and_alias(self):
        item = TypeAlias(package="lamp", name="ColorsItem", target=primitive("integer"))
        colors = ClassDescriptor(package="lamp", name="Colors", kind=ClassKind.MAP_WRAPPER, map_value=item.type_ref)
        modules = render(GenerationResult(model_name="Lamp", root_package="lamp", classes=[colors], aliases=[item]))
        assert "ColorsItem = int" in modules["lamp.ColorsItem"]
        assert "class Colors(dict[str, ColorsItem]):\n    pass" in modules["lamp.Colors"]
        assert "dataclass" not in modules["lamp.Colors"]
        assert "def colors" not in modules["lamp.Colors"]

    def test_separate_enum_module(self):
        enum_def = mode_enum()
        enum_def.package = "lamp"
        enum_def.description = "Operating mode."
        content = render(GenerationResult(model_name="Lamp", root_package="lamp", enums=[enum_def]))["lamp.Mode"]
        assert "from enum import Enum" in content
        assert 'class Mode(str, Enum):\n    """Operating mode."""\n\n    ECO = "eco"\n    NIGHT = "night"' in content

    def test_interface(self):
        interface = ActionInterface(
            package="lamp.actions",
            name="SwitchOff",
            method_name="switchOff",
            action_name="switchOff",
            output=primitive("boolean"),
            deprecation_message="Use switchOn instead.",
        )
        content = render(GenerationResult(model_name="Lamp", root_package="lamp", interfaces=[interface]))["lamp.actions.SwitchOff"]
        assert "from abc import ABC, abstractmethod" in content
        assert "class SwitchOff(ABC):" in content
        assert '    ACTION_NAME: ClassVar[str] = "switchOff"' in content
        assert '    @abstractmethod\n    def switchOff(self) -> bool:\n        """Use switchOn instead."""' in content

    def test_async_interface_with_payload(self):
        interface = ActionInterface(
            package="lamp.actions",
            name="Dim",
            method_name="dim",
            action_name="dim",
            input=primitive("integer"),
        )
        content = render(GenerationResult(model_name="Lamp", root_package="lamp", interfaces=[interface]), suspend_dsl=True)[
            "lamp.actions.Dim"
        ]
        assert "    async def dim(self, payload: int) -> None:\n        ..." in content

    def test_package_inits(self):
        point = ClassDescriptor(package="lamp.features.light", name="Point")
        modules = render(GenerationResult(model_name="FloorLamp", root_package="lamp", classes=[point]))
        assert '"""Generated object model of FloorLamp."""' in modules["lamp.__init__"]
        assert "lamp.features.__init__" in modules
        assert "lamp.features.light.__init__" in modules

    def test_duplicate_module(self):
        first = ClassDescriptor(package="lamp", name="Point")
        second = ClassDescriptor(package="lamp", name="Point", fields=[FieldDef(name="x", json_name="x", type_ref=primitive("number"))])
        backend = PythonBackend(GeneratorConfig())
        with pytest.raises(CodeValidationError, match="same module 'lamp.Point'"):
            backend.render_all(GenerationResult(model_name="Lamp", root_package="lamp", classes=[first, second]))


if __name__ == "__main__":
    pytest.main([__file__])
