"""WoT Thing Model to Code Generator

A Python package for generating a typed Python object model (dataclasses,
enums and abstract action interfaces) from Web of Things Thing Models.
"""

__version__ = "1.0.0"

from .pipeline import (
    AtomicWriter,
    ClassNamingPolicy,
    EnumPlacement,
    GeneratorConfig,
    ThingModelGenerationError,
    ThingModelGenerator,
    generate,
)

__all__ = [
    "ThingModelGenerator",
    "generate",
    "GeneratorConfig",
    "EnumPlacement",
    "ClassNamingPolicy",
    "ThingModelGenerationError",
    "AtomicWriter",
]
