"""
Configuration for the Thing Model generator pipeline.
"""

from __future__ import annotations

import keyword
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .errors import ConfigurationError


class EnumPlacement(str, Enum):
    """Where generated enums are emitted."""

    INLINE = "inline"  # Nested inside the owning class
    SEPARATE = "separate"  # Own module in the owning package


class ClassNamingPolicy(str, Enum):
    """How class names for nested object schemas are derived."""

    ALWAYS_COMPOUND = "always-compound"  # Parent + original, always
    ORIGINAL_THEN_COMPOUND = "original-then-compound"  # Original, compound on collision


@dataclass
class GeneratorConfig:
    """Configuration options for one generation run."""

    # Location of the Thing Model (http(s) URL, file:// URL or path)
    model_url: str = ""

    # Root package of the generated object model (dotted)
    output_package: str = ""

    # Directory receiving the generated package tree
    output_dir: str = "."

    # Enum placement policy
    enum_placement: EnumPlacement = EnumPlacement.INLINE

    # Class naming policy
    naming_policy: ClassNamingPolicy = ClassNamingPolicy.ALWAYS_COMPOUND

    # Emit builder functions for generated classes
    generate_dsl: bool = True

    # Emit async builder functions and async action methods
    suspend_dsl: bool = False

    # Fail when a tm:ref pointer does not resolve (False warns and drops the referencing schema)
    strict_references: bool = True

    # Maximum schema nesting / reference chain depth
    max_depth: int = 64

    # Timeout in seconds for HTTP model fetches
    request_timeout: float = 30.0

    # Add generation comment at top of each module
    add_generation_comment: bool = True

    def __post_init__(self):
        # Accept plain strings, as found in JSON config files
        self.enum_placement = EnumPlacement(self.enum_placement)
        self.naming_policy = ClassNamingPolicy(self.naming_policy)

    @staticmethod
    def from_dict(d: dict) -> GeneratorConfig:
        """Create a config from a dictionary."""
        config = GeneratorConfig()
        for k, v in d.items():
            if hasattr(config, k):
                setattr(config, k, v)
        config.__post_init__()
        return config

    def to_dict(self) -> dict:
        """Convert config to a dictionary."""
        return {
            "model_url": self.model_url,
            "output_package": self.output_package,
            "output_dir": self.output_dir,
            "enum_placement": self.enum_placement.value,
            "naming_policy": self.naming_policy.value,
            "generate_dsl": self.generate_dsl,
            "suspend_dsl": self.suspend_dsl,
            "strict_references": self.strict_references,
            "max_depth": self.max_depth,
            "request_timeout": self.request_timeout,
            "add_generation_comment": self.add_generation_comment,
        }

    def validate(self) -> None:
        """Check the configuration before a run.

        Raises:
            ConfigurationError: If the model URL or package is blank, the package is
                not a dotted Python identifier, or the output directory cannot be created
        """
        if not self.model_url.strip():
            raise ConfigurationError("Thing Model URL must not be blank")
        if not self.output_package.strip():
            raise ConfigurationError("Output package must not be blank")
        for segment in self.output_package.split("."):
            if not segment.isidentifier() or keyword.iskeyword(segment):
                raise ConfigurationError(f"Output package '{self.output_package}' is not a valid Python package name")
        if self.max_depth < 1:
            raise ConfigurationError(f"max_depth must be positive, got {self.max_depth}")

        output_dir = Path(self.output_dir)
        if output_dir.exists() and not output_dir.is_dir():
            raise ConfigurationError(f"Output directory '{output_dir}' exists and is not a directory")
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(f"Output directory '{output_dir}' cannot be created: {e}") from e
