"""
Base class for code generation backends.

Defines the interface that all language-specific backends must implement.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

import jinja2

from ..analyzer.ir_nodes import GenerationResult, TypeRef
from ..config import GeneratorConfig
from ..errors import CodeValidationError

logger = logging.getLogger(__name__)


@dataclass
class RenderedModule:
    """Source text of one generated module."""

    package: str
    name: str
    content: str

    @property
    def qualified_name(self) -> str:
        return f"{self.package}.{self.name}"

    @property
    def relative_path(self) -> Path:
        """Path of the module below the output directory."""
        return Path(*self.package.split("."), f"{self.name}.py")


class CodeBackend(ABC):
    """Abstract base class for code generation backends."""

    # Type mapping from schema-level primitive names to language types
    TYPE_MAP: dict[str, str] = {}

    # Template directory name
    TEMPLATE_LANG: str = ""

    # File extension
    FILE_EXTENSION: str = ""

    def __init__(self, config: GeneratorConfig, generation_comment: str = ""):
        """
        Initialize the backend.

        Args:
            config: Generator configuration
            generation_comment: Comment placed at the top of every module (may be empty)
        """
        self.config = config
        self.generation_comment = generation_comment
        self._setup_templates()

    def _setup_templates(self) -> None:
        """Set up Jinja2 templates."""
        template_dir = Path(__file__).parent.parent.parent / "templates" / self.TEMPLATE_LANG
        self.jinja_env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            lstrip_blocks=True,
            trim_blocks=True,
        )

    def get_template(self, kind: str) -> jinja2.Template:
        return self.jinja_env.get_template(f"{kind}.{self.FILE_EXTENSION}.jinja2")

    def render_all(self, result: GenerationResult) -> list[RenderedModule]:
        """
        Render every module of a generation result.

        Args:
            result: The resolved type graph

        Returns:
            The rendered modules

        Raises:
            CodeValidationError: If two generated types map to the same module
        """
        modules = self.render(result)
        seen: dict[Path, RenderedModule] = {}
        for module in modules:
            path = module.relative_path
            if path in seen:
                raise CodeValidationError(f"Two generated types map to the same module '{module.qualified_name}'")
            seen[path] = module
        logger.info(f"Rendered {len(modules)} modules")
        return modules

    @abstractmethod
    def render(self, result: GenerationResult) -> list[RenderedModule]:
        """
        Render the generation result into modules.

        Args:
            result: The resolved type graph

        Returns:
            One module per generated type, plus package initializers
        """

    @abstractmethod
    def translate_type(self, type_ref: TypeRef) -> str:
        """
        Translate an IR type to a language-specific type string.

        Args:
            type_ref: The type reference

        Returns:
            Language-specific type string
        """
