"""
Reference resolver for tm:ref model references.

Inlines externally linked schema fragments before any naming or typing
decision is made. A marker looks like

    {"tm:ref": "https://example.org/common.tm.jsonld#/properties/brightness"}

and the whole object holding it is replaced by the referenced fragment.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any

from jsonpointer import JsonPointer, JsonPointerException, resolve_pointer, set_pointer

from ..errors import ReferenceResolutionError, UnsupportedSchemaError
from ..loader import ModelLoader, resolve_url

logger = logging.getLogger(__name__)

REF_KEY = "tm:ref"
REF_DELIMITER = "#"

_MISSING = object()


@dataclass
class ReferenceMarker:
    """A tm:ref found in a schema."""

    parent_path: str  # JSON pointer of the object holding the marker
    reference: str  # The raw tm:ref value


def find_references(schema: Any) -> list[ReferenceMarker]:
    """
    Find every tm:ref marker in schema, depth-first.

    The recorded path points at the marker's parent object. The siblings of a
    marker are replaced on splicing, so the search does not descend into them.

    Args:
        schema: Any JSON value

    Returns:
        Markers in document order
    """
    markers: list[ReferenceMarker] = []

    def visit(value: Any, parts: list[str]) -> None:
        if isinstance(value, dict):
            if REF_KEY in value:
                markers.append(ReferenceMarker(JsonPointer.from_parts(parts).path, value[REF_KEY]))
                return
            for key, child in value.items():
                visit(child, [*parts, key])
        elif isinstance(value, list):
            for index, child in enumerate(value):
                visit(child, [*parts, str(index)])

    visit(schema, [])
    return markers


def split_reference(reference: Any) -> tuple[str, str]:
    """
    Split a tm:ref value into document URL and JSON pointer.

    Raises:
        ReferenceResolutionError: Unless the value holds exactly one '#'
    """
    if not isinstance(reference, str):
        raise ReferenceResolutionError(str(reference), "reference must be a string")
    parts = reference.split(REF_DELIMITER)
    if len(parts) != 2:
        raise ReferenceResolutionError(reference, f"expected exactly one '{REF_DELIMITER}' between document and pointer")
    return parts[0], parts[1]


class ReferenceResolver:
    """Inlines tm:ref markers into schemas."""

    def __init__(self, loader: ModelLoader, strict: bool = True, max_depth: int = 64):
        """
        Initialize the resolver.

        Args:
            loader: Loader used to fetch referenced documents
            strict: Fail on pointers that do not resolve (otherwise warn and drop the referencing schema)
            max_depth: Maximum length of a reference chain
        """
        self.loader = loader
        self.strict = strict
        self.max_depth = max_depth

    async def inline(self, schema: Any, base_url: str) -> Any:
        """
        Return a copy of schema with every tm:ref marker replaced by its fragment.

        Args:
            schema: The schema to inline (left untouched)
            base_url: URL of the document holding schema, for relative references

        Returns:
            The fully inlined schema

        Raises:
            ReferenceResolutionError: On malformed references or unresolvable pointers
            UnsupportedSchemaError: On cyclic or too deeply chained references
            ModelLoadError: If a referenced document cannot be loaded
        """
        return await self._inline(copy.deepcopy(schema), base_url, ())

    async def _inline(self, schema: Any, base_url: str, chain: tuple[tuple[str, str], ...]) -> Any:
        markers = find_references(schema)
        fragments = [await self._fetch_fragment(marker.reference, base_url, chain) for marker in markers]
        # Splice in reverse document order: dropping a list item must not shift pending paths
        for marker, fragment in reversed(list(zip(markers, fragments))):
            if fragment is _MISSING:
                if marker.parent_path != "":
                    container, key = JsonPointer(marker.parent_path).to_last(schema)
                    del container[key]
                continue
            if marker.parent_path == "":
                schema = fragment
            else:
                set_pointer(schema, marker.parent_path, fragment)
        return schema

    async def _fetch_fragment(self, reference: str, base_url: str, chain: tuple[tuple[str, str], ...]) -> Any:
        document_part, pointer = split_reference(reference)
        document_url = resolve_url(base_url, document_part)

        link = (document_url, pointer)
        if link in chain:
            raise UnsupportedSchemaError(f"Cyclic model reference '{reference}' (chain: {' -> '.join(u + '#' + p for u, p in chain)})")
        if len(chain) >= self.max_depth:
            raise UnsupportedSchemaError(f"Model reference chain exceeds maximum depth {self.max_depth} at '{reference}'")

        document = await self.loader.load(document_url)
        try:
            fragment = resolve_pointer(document, pointer)
        except JsonPointerException:
            fragment = None

        if fragment is None:
            if self.strict:
                raise ReferenceResolutionError(reference, f"pointer '{pointer}' does not resolve in '{document_url}'")
            logger.warning(f"Skipping reference '{reference}': pointer does not resolve in '{document_url}'")
            return _MISSING

        logger.debug(f"Inlining reference '{reference}'")
        return await self._inline(fragment, document_url, (*chain, link))
