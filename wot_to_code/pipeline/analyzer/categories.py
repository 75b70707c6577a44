"""
Category grouper: stable partition of a feature's properties by category tag.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field


@dataclass
class CategoryPartition:
    """Properties grouped by category label, plus the uncategorized ones."""

    # Category label -> property names, in first-seen category order
    groups: dict[str, list[str]] = field(default_factory=dict)

    # Property names without a category tag
    ungrouped: list[str] = field(default_factory=list)

    @property
    def categories(self) -> list[str]:
        return list(self.groups)


def group_by_category(properties: Mapping[str, object], categories: Mapping[str, str | None]) -> CategoryPartition:
    """
    Partition properties by their category tag.

    Input order is preserved within every group and within the ungrouped list;
    each property lands in exactly one place.

    Args:
        properties: The feature's properties, in document order
        categories: Category tag per property name; missing or None means uncategorized

    Returns:
        The partition
    """
    partition = CategoryPartition()
    for name in properties:
        category = categories.get(name)
        if category is None:
            partition.ungrouped.append(name)
        else:
            partition.groups.setdefault(category, []).append(name)
    return partition
