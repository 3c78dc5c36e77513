import json
import sys
from pathlib import Path

import httpx
import pytest

# Ensure apps/client is on path for imports of the `gemlisting` package.
ROOT = Path(__file__).resolve().parents[1]
CLIENT_PATH = ROOT / "apps" / "client"
if str(CLIENT_PATH) not in sys.path:
    sys.path.insert(0, str(CLIENT_PATH))

API_BASE = "http://api.test/api"
STORAGE_BASE = "https://storage.test/bucket"


class FakeBackend:
    """Canned responses keyed by (method, path); a trailing '*' matches a prefix."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def on(self, method, path, response=None, status=200):
        self.routes[(method, path)] = (response, status)

    def _lookup(self, method, path):
        if (method, path) in self.routes:
            return self.routes[(method, path)]
        for (route_method, route_path), value in self.routes.items():
            if route_method == method and route_path.endswith("*") and path.startswith(route_path[:-1]):
                return value
        return None

    def handler(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        route = self._lookup(request.method, request.url.path)
        if route is None:
            return httpx.Response(404, json={"success": False, "message": f"no route {request.url.path}"})
        response, status = route
        if callable(response):
            response = response(request)
        if isinstance(response, httpx.Response):
            return response
        if response is None:
            return httpx.Response(status)
        return httpx.Response(status, json=response)

    def serve_uploads(self, storage_base=STORAGE_BASE):
        """Issue one pre-signed PUT URL per requested file and accept every PUT."""

        def presign(request):
            files = json.loads(request.content)["files"]
            targets = []
            for index, item in enumerate(files):
                key = f"{item['mediaType']}/{index}-{item['fileName']}"
                targets.append(
                    {
                        "fileName": item["fileName"],
                        "uploadUrl": f"{storage_base}/{key}?signature=test",
                        "s3Key": key,
                        "mediaType": item["mediaType"],
                    }
                )
            return {"success": True, "data": targets}

        self.on("POST", "/api/gems/upload-urls", presign)
        self.on("PUT", "/bucket/*")

    def calls(self, method, path_prefix=""):
        return [r for r in self.requests if r.method == method and r.url.path.startswith(path_prefix)]

    def json_body(self, request):
        return json.loads(request.content)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def api(backend):
    from gemlisting.infrastructure.http.api_client import ApiClient

    return ApiClient(
        base_url=API_BASE,
        token_provider=lambda: "token-123",
        transport=httpx.MockTransport(backend.handler),
    )


@pytest.fixture
def service(api):
    from gemlisting.infrastructure.http.gem_service import GemService

    return GemService(api)


@pytest.fixture
def make_file():
    from gemlisting.core.domain.media import LocalFile

    def _make(name="photo.jpg", content_type="image/jpeg", size=1024):
        return LocalFile.from_bytes(name, b"x" * size, content_type)

    return _make
