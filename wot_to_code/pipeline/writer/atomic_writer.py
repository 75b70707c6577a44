"""
Atomic file writer for generated modules.

Ensures that an interrupted or failed generation run never leaves a module
half-written, and that invalid Python is rejected before anything reaches
the output directory.
"""

from __future__ import annotations

import ast
import logging
import tempfile
from collections.abc import Callable, Iterable
from pathlib import Path

from ..backends.base import RenderedModule
from ..errors import CodeValidationError

logger = logging.getLogger(__name__)


class AtomicWriter:
    """Validates and writes generated modules.

    Uses a two-phase approach:
    1. Validate every module in memory
    2. Write each one to a temporary file in its target directory and
       atomically replace the target file
    """

    def __init__(self, validate_python: Callable[[str, str], None] | None = None):
        """Initialize the atomic writer.

        Args:
            validate_python: Optional validation function taking (content, module path)
        """
        self._validate_python = validate_python or self._default_validate_python

    def write_all(self, output_dir: Path, modules: Iterable[RenderedModule]) -> list[Path]:
        """Validate all modules, then write them below output_dir.

        Args:
            output_dir: Root directory of the generated package tree
            modules: The rendered modules

        Returns:
            Paths of the written files, in input order

        Raises:
            CodeValidationError: If any module is not valid Python (nothing is written)
            OSError: If file operations fail
        """
        modules = list(modules)
        for module in modules:
            self._validate_python(module.content, str(module.relative_path))

        written = []
        for module in modules:
            path = output_dir / module.relative_path
            self.write(path, module.content)
            written.append(path)
        logger.info(f"Wrote {len(written)} modules to {output_dir}")
        return written

    def write(self, path: Path, content: str) -> None:
        """Write content to path atomically.

        Args:
            path: Target file path
            content: Content to write

        Raises:
            OSError: If file operations fail
        """
        path.parent.mkdir(parents=True, exist_ok=True)

        # Same directory ensures atomic rename on the same filesystem
        temp_fd, temp_path_str = tempfile.mkstemp(
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            text=True,
        )
        temp_path = Path(temp_path_str)

        try:
            with open(temp_fd, "w", encoding="utf-8") as f:
                f.write(content)
            temp_path.replace(path)
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise
        logger.debug(f"Wrote {path}")

    def _default_validate_python(self, content: str, module_path: str) -> None:
        """Reject content that does not parse.

        Raises:
            CodeValidationError: If validation fails
        """
        try:
            ast.parse(content)
        except SyntaxError as e:
            raise CodeValidationError(f"Generated Python code in '{module_path}' is not valid: {e}") from e
