"""
Loading of Thing Models and referenced documents.

http(s) documents are fetched with a shared httpx.AsyncClient; file:// URLs
and plain paths are read from disk. Every document is parsed once per run.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urljoin, urlparse

import httpx

from .errors import ModelLoadError

logger = logging.getLogger(__name__)

_REMOTE_SCHEMES = ("http", "https")


def normalize_url(location: str) -> str:
    """Turn a path or URL into an absolute URL usable as a cache key and join base."""
    parsed = urlparse(location)
    if parsed.scheme in _REMOTE_SCHEMES or parsed.scheme == "file":
        return location
    return Path(location).expanduser().resolve().as_uri()


def resolve_url(base: str, href: str) -> str:
    """Resolve href relative to the document it appears in."""
    if not href:
        return base
    if urlparse(href).scheme in (*_REMOTE_SCHEMES, "file"):
        return href
    return urljoin(base, href)


class ModelLoader:
    """Loads JSON documents by URL, caching each one for the lifetime of the loader.

    Use as an async context manager so the HTTP client is closed:

        async with ModelLoader() as loader:
            document = await loader.load("https://example.org/lamp.tm.jsonld")
    """

    def __init__(self, timeout: float = 30.0, transport: httpx.AsyncBaseTransport | None = None):
        """
        Initialize the loader.

        Args:
            timeout: Timeout in seconds for HTTP requests
            transport: Optional httpx transport (e.g. httpx.MockTransport in tests)
        """
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._cache: dict[str, Any] = {}

    async def __aenter__(self) -> ModelLoader:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def load(self, url: str) -> Any:
        """
        Load and parse the JSON document at url.

        Args:
            url: http(s) URL, file:// URL or filesystem path

        Returns:
            A deep copy of the parsed document

        Raises:
            ModelLoadError: If the document cannot be fetched or is not valid JSON
        """
        url = normalize_url(url)
        if url not in self._cache:
            logger.info(f"Loading model from: {url}")
            if urlparse(url).scheme in _REMOTE_SCHEMES:
                text = await self._fetch(url)
            else:
                text = self._read_file(url)
            try:
                self._cache[url] = json.loads(text)
            except json.JSONDecodeError as e:
                raise ModelLoadError(url, f"invalid JSON: {e}") from e
        return copy.deepcopy(self._cache[url])

    async def _fetch(self, url: str) -> str:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, follow_redirects=True, transport=self._transport)
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ModelLoadError(url, f"HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise ModelLoadError(url, str(e) or type(e).__name__) from e
        return response.text

    def _read_file(self, url: str) -> str:
        path = Path(unquote(urlparse(url).path))
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise ModelLoadError(url, e.strerror or str(e)) from e
