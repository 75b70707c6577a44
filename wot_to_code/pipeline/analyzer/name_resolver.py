"""
Name resolver: deterministic derivation of class, property, enum-constant
and package names.

All functions are pure; the only input besides the names themselves is the
set of names already taken, which callers pass explicitly.
"""

from __future__ import annotations

import keyword
import re
from collections.abc import Collection

from ...utils import to_pascal_case
from ..config import ClassNamingPolicy

# Prefix for enum constants that would otherwise be empty or start with a digit
ENUM_CONSTANT_MARKER = "VALUE_"

# Suffix used by original-then-compound naming when no parent is available
ORIGINAL_COLLISION_SUFFIX = "Item"

_NON_CONSTANT_CHARS = re.compile(r"[^A-Z0-9_]")
_UNDERSCORE_RUNS = re.compile(r"__+")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def _sanitize_identifier(name: str) -> str:
    """Prefix with an underscore when name is not usable as a Python identifier."""
    if not name.isidentifier() or keyword.iskeyword(name):
        return f"_{name}"
    return name


def as_class_name(name: str) -> str:
    """Derive a PascalCase class name.

    Examples:
        "battery-level" -> "BatteryLevel"
        "ID" -> "Id"
        "Floor Lamp" -> "FloorLamp"
    """
    class_name = to_pascal_case(name)
    if class_name and not class_name.isidentifier():
        class_name = f"_{class_name}"
    return class_name


def as_class_name_with_policy(
    original: str,
    parent: str | None,
    policy: ClassNamingPolicy,
    used_names: Collection[str] = (),
) -> str:
    """Derive a class name for a nested schema under a naming policy.

    Args:
        original: Field name or title of the schema
        parent: Name of the enclosing class, if any
        policy: The naming policy of the run
        used_names: Class names already taken in the target package by other shapes

    Returns:
        The candidate class name
    """
    original_class_name = as_class_name(original)

    if policy == ClassNamingPolicy.ALWAYS_COMPOUND:
        if not parent:
            return original_class_name
        original_lower = original.lower()
        parent_lower = parent.lower()
        # Avoid RoomRoomType when the original already names its parent
        if parent_lower in original_lower and original_lower != parent_lower:
            return original_class_name
        return f"{as_class_name(parent)}{original_class_name}"

    if original_class_name not in used_names:
        return original_class_name
    if parent:
        return f"{as_class_name(parent)}{original_class_name}"
    return f"{original_class_name}{ORIGINAL_COLLISION_SUFFIX}"


def as_property_name(name: str) -> str:
    """Derive a field name: class name with a lowercase first letter.

    Examples:
        "battery-level" -> "batteryLevel"
        "class" -> "_class"
    """
    class_name = to_pascal_case(name)
    property_name = class_name[:1].lower() + class_name[1:]
    return _sanitize_identifier(property_name)


def as_enum_constant(value: object) -> str:
    """Derive an enum constant name from an enum value.

    Examples:
        "on" -> "ON"
        "low-power mode" -> "LOW_POWER_MODE"
        "1st" -> "VALUE_1ST"
        "" -> "VALUE_"
    """
    constant = str(value).upper()
    constant = _NON_CONSTANT_CHARS.sub("_", constant)
    constant = _UNDERSCORE_RUNS.sub("_", constant)
    constant = constant.strip("_")
    if not constant or constant[0].isdigit():
        return f"{ENUM_CONSTANT_MARKER}{constant}"
    return constant


def as_screaming_snake_case(name: str) -> str:
    """Derive a constant name from a camelCase action name.

    Examples:
        "switchOn" -> "SWITCH_ON"
        "reset" -> "RESET"
    """
    return as_enum_constant(_CAMEL_BOUNDARY.sub("_", name))


def as_package_name(name: str) -> str:
    """Derive a package segment from a feature instance name.

    Examples:
        "Lamp Feature" -> "lampfeature"
        "battery-status" -> "battery_status"
    """
    segment = re.sub(r"[^0-9a-z_]+", "_", name.replace(" ", "").lower()).strip("_")
    return _sanitize_identifier(segment) if segment else "_feature"


def unique_name(candidate: str, taken: Collection[str]) -> str:
    """Append the smallest numeric suffix that makes candidate unique."""
    if candidate not in taken:
        return candidate
    index = 2
    while f"{candidate}{index}" in taken:
        index += 1
    return f"{candidate}{index}"
