"""
Generation context threaded through every recursive type resolution.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum


class Role(Enum):
    """Structural role of the schema being resolved."""

    FEATURE = "feature"
    FEATURE_PROPERTY = "feature_property"
    ATTRIBUTE = "attribute"
    OTHER = "other"

    def descend(self) -> Role:
        """Role of schemas nested one level below this one."""
        return _NEXT_ROLE[self]


_NEXT_ROLE = {
    Role.FEATURE: Role.FEATURE_PROPERTY,
    Role.FEATURE_PROPERTY: Role.OTHER,
    Role.ATTRIBUTE: Role.OTHER,
    Role.OTHER: Role.OTHER,
}


@dataclass(frozen=True)
class NamingContext:
    """(parent class name, role, enclosing feature) plus the current nesting depth."""

    parent_class_name: str | None = None
    role: Role = Role.OTHER
    feature: str | None = None
    depth: int = 0

    def descend(self, parent_class_name: str | None = None) -> NamingContext:
        """Context for the children of the schema resolved under this context."""
        return replace(
            self,
            parent_class_name=parent_class_name if parent_class_name is not None else self.parent_class_name,
            role=self.role.descend(),
            depth=self.depth + 1,
        )

    def nested(self) -> NamingContext:
        """Same role and parent one level deeper (array items, map values)."""
        return replace(self, depth=self.depth + 1)
