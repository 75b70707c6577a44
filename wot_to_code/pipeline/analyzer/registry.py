"""
Class and enum registries.

Both registries key generated types by (package, simple name) and compare
structural fingerprints to tell a re-resolution of the same type apart from
a different type that happens to want the same name. A registry belongs to
exactly one generation run.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from ..errors import EnumConflictError
from .ir_nodes import ClassDescriptor, EnumDescriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Registration:
    """Outcome of a registry insertion."""

    name: str
    was_renamed: bool


class ClassRegistry:
    """Structural-conflict detector for generated classes.

    The registry never invents names: on a conflict the caller computes a new
    candidate and registers again.
    """

    def __init__(self):
        self._fingerprints: dict[tuple[str, str], str] = {}
        self._classes: dict[tuple[str, str], ClassDescriptor] = {}

    def has_conflict(self, package: str, name: str, fingerprint: str) -> bool:
        """True only if a different fingerprint is registered under (package, name)."""
        existing = self._fingerprints.get((package, name))
        return existing is not None and existing != fingerprint

    def has_class(self, package: str, name: str) -> bool:
        return (package, name) in self._fingerprints

    def register(self, package: str, name: str, fingerprint: str, requested_name: str | None = None) -> Registration:
        """
        Register a class shape under (package, name).

        Registering an identical fingerprint again is a no-op.

        Args:
            package: Package of the class
            name: Final candidate name
            fingerprint: Structural fingerprint of the class
            requested_name: Name the caller asked for before resolving a conflict

        Returns:
            The registered name and whether it differs from the requested one

        Raises:
            ValueError: If (package, name) already holds a different fingerprint
        """
        key = (package, name)
        existing = self._fingerprints.get(key)
        if existing is not None and existing != fingerprint:
            raise ValueError(f"Class '{name}' in package '{package}' is already registered with a different shape")
        if existing is None:
            self._fingerprints[key] = fingerprint
            logger.debug(f"Registered class {package}.{name}")
        return Registration(name=name, was_renamed=requested_name is not None and requested_name != name)

    def add(self, descriptor: ClassDescriptor) -> None:
        """Attach the finished descriptor of a registered class."""
        self._classes[(descriptor.package, descriptor.name)] = descriptor

    def get(self, package: str, name: str) -> ClassDescriptor | None:
        return self._classes.get((package, name))

    def names_in(self, package: str) -> set[str]:
        return {name for pkg, name in self._fingerprints if pkg == package}

    def conflicting_names(self, package: str, fingerprint: str) -> set[str]:
        """Names in package already taken by a different shape."""
        return {name for name in self.names_in(package) if self.has_conflict(package, name, fingerprint)}

    @property
    def classes(self) -> list[ClassDescriptor]:
        return list(self._classes.values())


def enum_fingerprint(values: Iterable[Any], value_type: str) -> str:
    """Order-independent fingerprint of an enum's constant set."""
    canonical = sorted(json.dumps(v, sort_keys=True, separators=(",", ":")) for v in values)
    return json.dumps({"type": value_type, "values": canonical}, separators=(",", ":"))


class EnumRegistry:
    """Conflict detector and deduplicator for generated enums.

    Inline placement keys enums by name alone and lets the last registration
    win. Separate placement keys them by name plus a fingerprint-derived
    suffix, reuses an identical constant set and rejects a different one.
    """

    def __init__(self):
        self._inline: dict[str, EnumDescriptor] = {}
        self._separate: dict[str, EnumDescriptor] = {}
        # (package, name) -> unique key of the first separate registration
        self._separate_keys: dict[tuple[str, str], str] = {}

    def has_conflict(self, package: str, name: str, fingerprint: str) -> bool:
        """True only if a different constant set is registered under (package, name)."""
        key = self._separate_keys.get((package, name))
        return key is not None and self._separate[key].fingerprint != fingerprint

    def register_inline(self, descriptor: EnumDescriptor) -> str:
        """Register an enum nested in its owner class; the last registration wins."""
        if descriptor.name in self._inline:
            logger.debug(f"Inline enum {descriptor.name} replaced by a later registration")
        self._inline[descriptor.name] = descriptor
        return descriptor.name

    def register_separate(self, package: str, descriptor: EnumDescriptor) -> str:
        """
        Register a top-level enum in package.

        Args:
            package: Package receiving the enum module
            descriptor: The enum; its package is set to package

        Returns:
            Unique registry key of the (possibly reused) enum

        Raises:
            EnumConflictError: If the same name already holds a different constant set
        """
        existing_key = self._separate_keys.get((package, descriptor.name))
        if existing_key is not None:
            existing = self._separate[existing_key]
            if existing.fingerprint != descriptor.fingerprint:
                raise EnumConflictError(descriptor.name, package, existing.values, descriptor.values)
            return existing_key

        descriptor.package = package
        suffix = hashlib.sha1(f"{package}:{descriptor.fingerprint}".encode()).hexdigest()[:8]
        key = f"{descriptor.name}.{suffix}"
        self._separate[key] = descriptor
        self._separate_keys[(package, descriptor.name)] = key
        logger.debug(f"Registered enum {package}.{descriptor.name}")
        return key

    def get(self, key: str) -> EnumDescriptor | None:
        """Look up an enum by inline name or separate key."""
        return self._separate.get(key) or self._inline.get(key)

    def constant_names(self, package: str, name: str) -> set[str]:
        """Constant identifiers of the separate enum registered under (package, name)."""
        key = self._separate_keys.get((package, name))
        return {c.name for c in self._separate[key].constants} if key else set()

    @property
    def inline_enums(self) -> dict[str, EnumDescriptor]:
        return dict(self._inline)

    @property
    def separate_enums(self) -> list[EnumDescriptor]:
        return list(self._separate.values())
