import asyncio

import httpx

from gemlisting.infrastructure.http.api_client import (
    NETWORK_ERROR,
    SERVER_ERROR,
    UNKNOWN_ERROR,
    ApiClient,
)


def client_for(handler, token=None):
    return ApiClient(
        base_url="http://api.test/api",
        token_provider=lambda: token,
        transport=httpx.MockTransport(handler),
    )


def test_bearer_token_is_attached_when_present(backend, api):
    backend.on("GET", "/api/gems/health", {"success": True, "data": {"status": "ok"}})
    envelope = asyncio.run(api.get("/gems/health"))
    assert envelope.success
    assert envelope.data == {"status": "ok"}
    assert backend.requests[0].headers["Authorization"] == "Bearer token-123"


def test_no_authorization_header_without_token(backend):
    backend.on("GET", "/api/gems/health", {"success": True})
    asyncio.run(client_for(backend.handler).get("/gems/health"))
    assert "Authorization" not in backend.requests[0].headers


def test_plain_bodies_are_wrapped(backend, api):
    backend.on("GET", "/api/gems/extract-lab-report/info", {"maxSize": 10})
    envelope = asyncio.run(api.get("/gems/extract-lab-report/info"))
    assert envelope.success
    assert envelope.data == {"maxSize": 10}


def test_error_status_with_envelope_passes_through(backend, api):
    body = {"success": False, "message": "Report number already exists", "error": "DUPLICATE"}
    backend.on("POST", "/api/gems", body, status=409)
    envelope = asyncio.run(api.post("/gems", json={}))
    assert (envelope.success, envelope.message, envelope.error) == (False, body["message"], "DUPLICATE")


def test_error_status_without_envelope_is_server_error(backend, api):
    backend.on("GET", "/api/gems/health", {"message": "boom"}, status=500)
    envelope = asyncio.run(api.get("/gems/health"))
    assert not envelope.success
    assert envelope.message == "boom"
    assert envelope.error == SERVER_ERROR

    backend.on("GET", "/api/gems/health", lambda _r: httpx.Response(502, text="Bad Gateway"))
    envelope = asyncio.run(api.get("/gems/health"))
    assert envelope.message == "Server error occurred (HTTP 502)"


def test_transport_failure_is_network_error():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    envelope = asyncio.run(client_for(refuse).get("/gems/health"))
    assert not envelope.success
    assert envelope.error == NETWORK_ERROR


def test_non_json_body_is_unknown_error(backend, api):
    backend.on("GET", "/api/gems/health", lambda _r: httpx.Response(200, text="<html>ok</html>"))
    envelope = asyncio.run(api.get("/gems/health"))
    assert not envelope.success
    assert envelope.message == "Invalid JSON response"
    assert envelope.error == UNKNOWN_ERROR


def test_async_context_manager_closes_both_clients(backend):
    async def run():
        async with client_for(backend.handler) as client:
            pass
        return client

    client = asyncio.run(run())
    assert client._client.is_closed
    assert client.storage.is_closed
