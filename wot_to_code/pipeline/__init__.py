"""
Pipeline - Thing Model to Python object model generator.

This module provides a multi-phase architecture for generating code from
Web of Things Thing Models:

1. Phase 1 (Loader): Fetch the model and its linked documents
2. Phase 2 (Reference Resolver): Inline tm:ref markers, merge tm:extends
3. Phase 3 (Parser): Parse the inlined JSON into the schema graph
4. Phase 4 (Analyzer): Resolve schemas into the IR through per-run registries
5. Phase 5 (Backend): Render the IR into Python modules
6. Phase 6 (Writer): Validate and atomically write the modules
"""

from __future__ import annotations

from .config import ClassNamingPolicy, EnumPlacement, GeneratorConfig
from .errors import (
    CodeValidationError,
    ConfigurationError,
    EnumConflictError,
    MalformedSchemaError,
    ModelLoadError,
    ReferenceResolutionError,
    ThingModelGenerationError,
    UnsupportedSchemaError,
)
from .generator import ThingModelGenerator, generate
from .writer import AtomicWriter

__all__ = [
    "ThingModelGenerator",
    "generate",
    "GeneratorConfig",
    "EnumPlacement",
    "ClassNamingPolicy",
    "ThingModelGenerationError",
    "ConfigurationError",
    "ModelLoadError",
    "ReferenceResolutionError",
    "MalformedSchemaError",
    "UnsupportedSchemaError",
    "EnumConflictError",
    "CodeValidationError",
    "AtomicWriter",
]
