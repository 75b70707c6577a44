"""
Errors raised while generating code from a Thing Model.

Every fatal condition of a generation run derives from
ThingModelGenerationError so callers (and the CLI) can treat the run as
"no usable output produced" with a single except clause.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any


class ThingModelGenerationError(Exception):
    """Base class for all fatal generation errors."""


class ConfigurationError(ThingModelGenerationError):
    """Raised when the generator configuration is unusable."""


class ModelLoadError(ThingModelGenerationError):
    """Raised when a Thing Model or referenced document cannot be loaded.

    Wraps network errors, I/O errors and invalid JSON.
    """

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Could not load '{url}': {reason}")


class ReferenceResolutionError(ThingModelGenerationError):
    """Raised when a tm:ref model reference cannot be inlined.

    This can happen when:
    - The reference does not contain exactly one '#' delimiter
    - The pointer does not resolve to a value in the target document
    """

    def __init__(self, reference: str, reason: str):
        self.reference = reference
        super().__init__(f"Unsupported reference link '{reference}': {reason}")


class MalformedSchemaError(ThingModelGenerationError):
    """Raised when a schema node misses a declared type or declares an unknown one."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Malformed schema at '{path}': {reason}")


class UnsupportedSchemaError(ThingModelGenerationError):
    """Raised for schema shapes the compiler deliberately rejects.

    This can happen when:
    - oneOf appears somewhere other than directly under an object schema
    - A model declares more than one tm:extends link
    - Model references form a cycle
    - Nesting exceeds the configured maximum depth
    """


class EnumConflictError(ThingModelGenerationError):
    """Raised when a same-named enum is registered with different values in one package."""

    def __init__(self, name: str, package: str, existing: Iterable[Any], new: Iterable[Any]):
        self.name = name
        self.package = package
        self.existing_values = sorted(str(v) for v in existing)
        self.new_values = sorted(str(v) for v in new)
        super().__init__(
            f"Enum conflict detected: Enum '{name}' already exists in package '{package}' "
            f"with different values.\n"
            f"  Existing values: [{', '.join(self.existing_values)}]\n"
            f"  New values: [{', '.join(self.new_values)}]\n"
            f"Consider giving the property a distinct name (e.g. '{name}ItemType') "
            f"or switching to inline enum placement."
        )


class CodeValidationError(ThingModelGenerationError):
    """Raised when a generated module is not valid Python."""
