"""
Code generation backends.

Render the resolved type graph into source modules.
"""

from __future__ import annotations

from .base import CodeBackend, RenderedModule
from .python_backend import PythonBackend

__all__ = [
    "CodeBackend",
    "PythonBackend",
    "RenderedModule",
]
