"""
Writer module.

Writes rendered modules to disk once all of them are known to be valid.
"""

from __future__ import annotations

from .atomic_writer import AtomicWriter

__all__ = [
    "AtomicWriter",
]
