import asyncio
import json

import httpx
import pytest

from wot_to_code.pipeline.errors import ModelLoadError
from wot_to_code.pipeline.loader import ModelLoader, normalize_url, resolve_url

LAMP_URL = "https://models.example.org/lamp.tm.jsonld"


def load(url, transport=None):
    async def run():
        async with ModelLoader(transport=transport) as loader:
            return await loader.load(url)

    return asyncio.run(run())


class TestModelLoader:
    """Test cases for loading Thing Models over HTTP and from disk"""

    def test_http_document_is_cached(self):
        requests = []

        def handler(request):
            requests.append(str(request.url))
            return httpx.Response(200, json={"title": "Lamp"})

        async def run():
            async with ModelLoader(transport=httpx.MockTransport(handler)) as loader:
                first = await loader.load(LAMP_URL)
                first["title"] = "changed"
                second = await loader.load(LAMP_URL)
                return second

        assert asyncio.run(run()) == {"title": "Lamp"}
        assert requests == [LAMP_URL]

    def test_http_error_status(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(404))
        with pytest.raises(ModelLoadError, match="HTTP 404") as exc_info:
            load(LAMP_URL, transport)
        assert exc_info.value.url == LAMP_URL

    def test_http_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        with pytest.raises(ModelLoadError, match="connection refused"):
            load(LAMP_URL, httpx.MockTransport(handler))

    def test_invalid_json(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="{not json"))
        with pytest.raises(ModelLoadError, match="invalid JSON"):
            load(LAMP_URL, transport)

    def test_file_path_and_url(self, tmp_path):
        path = tmp_path / "lamp.tm.jsonld"
        path.write_text(json.dumps({"title": "Lamp"}), encoding="utf-8")
        assert load(str(path)) == {"title": "Lamp"}
        assert load(path.as_uri()) == {"title": "Lamp"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ModelLoadError, match="Could not load"):
            load(str(tmp_path / "missing.tm.jsonld"))

    def test_normalize_url(self, tmp_path):
        assert normalize_url(LAMP_URL) == LAMP_URL
        assert normalize_url(str(tmp_path / "lamp.json")) == (tmp_path / "lamp.json").resolve().as_uri()

    def test_resolve_url(self):
        assert resolve_url(LAMP_URL, "light.tm.jsonld") == "https://models.example.org/light.tm.jsonld"
        assert resolve_url(LAMP_URL, "") == LAMP_URL
        assert resolve_url("file:///models/lamp.tm.jsonld", "https://x.org/a.json") == "https://x.org/a.json"
        assert resolve_url("file:///models/lamp.tm.jsonld", "../common/a.json") == "file:///common/a.json"


if __name__ == "__main__":
    pytest.main([__file__])
