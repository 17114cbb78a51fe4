"""Tests for the submission gateway against a mocked HTTP transport."""

import json

import httpx
import pytest

from credupi.gateway.sheets import DeliveryMode, SubmissionGateway
from credupi.schemas.waitlist import DeliveryOutcome, WaitlistEntry

ENDPOINT = "https://script.example.com/macros/s/test/exec"


def make_gateway(handler, mode=DeliveryMode.OBSERVED, endpoint=ENDPOINT):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SubmissionGateway(endpoint, mode=mode, http_client=client)


@pytest.fixture
def entry():
    return WaitlistEntry.finalized(
        intent="I'm curious what this is about",
        user_type="Student",
        digits="9876543210",
        prefix="+91",
    )


class TestObservedMode:
    """Responses are read and decide the outcome."""

    @pytest.mark.asyncio
    async def test_posts_json_entry(self, entry):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"success": True})

        outcome = await make_gateway(handler).submit(entry)

        assert outcome == DeliveryOutcome.DELIVERED
        request = seen[0]
        assert request.method == "POST"
        assert request.headers["content-type"] == "application/json"
        assert json.loads(request.content) == {
            "intent": "I'm curious what this is about",
            "userType": "Student",
            "phone": "+919876543210",
            "timestamp": entry.timestamp,
        }

    @pytest.mark.asyncio
    async def test_server_error_fails(self, entry):
        outcome = await make_gateway(lambda request: httpx.Response(500)).submit(entry)
        assert outcome == DeliveryOutcome.FAILED

    @pytest.mark.asyncio
    async def test_explicit_failure_flag_fails(self, entry):
        handler = lambda request: httpx.Response(200, json={"success": False, "error": "No data provided"})
        outcome = await make_gateway(handler).submit(entry)
        assert outcome == DeliveryOutcome.FAILED

    @pytest.mark.asyncio
    async def test_non_json_success_delivers(self, entry):
        handler = lambda request: httpx.Response(200, text="<html>ok</html>")
        outcome = await make_gateway(handler).submit(entry)
        assert outcome == DeliveryOutcome.DELIVERED

    @pytest.mark.asyncio
    async def test_flag_absent_delivers(self, entry):
        handler = lambda request: httpx.Response(200, json={"status": "OK"})
        outcome = await make_gateway(handler).submit(entry)
        assert outcome == DeliveryOutcome.DELIVERED

    @pytest.mark.asyncio
    async def test_follows_script_redirect(self, entry):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/exec"):
                return httpx.Response(302, headers={"Location": "https://script.example.com/echo"})
            return httpx.Response(200, json={"success": False})

        outcome = await make_gateway(handler).submit(entry)
        assert outcome == DeliveryOutcome.FAILED

    @pytest.mark.asyncio
    async def test_transport_error_falls_back_to_opaque(self, entry):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ConnectError("blocked", request=request)
            return httpx.Response(500)

        outcome = await make_gateway(handler).submit(entry)

        assert outcome == DeliveryOutcome.DELIVERED
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_fallback_error_fails(self, entry):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ConnectError("unreachable", request=request)

        outcome = await make_gateway(handler).submit(entry)

        assert outcome == DeliveryOutcome.FAILED
        assert len(calls) == 2


class TestOpaqueMode:
    """The response is never inspected."""

    @pytest.mark.asyncio
    async def test_dispatch_delivers_regardless_of_status(self, entry):
        gateway = make_gateway(lambda request: httpx.Response(500), mode=DeliveryMode.OPAQUE)
        assert await gateway.submit(entry) == DeliveryOutcome.DELIVERED

    @pytest.mark.asyncio
    async def test_dispatch_error_fails(self, entry):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        gateway = make_gateway(handler, mode=DeliveryMode.OPAQUE)
        assert await gateway.submit(entry) == DeliveryOutcome.FAILED


class TestConfiguration:
    """Endpoint resolution and health probe."""

    @pytest.mark.asyncio
    async def test_unset_endpoint_fails_without_request(self, entry):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200)

        for endpoint in (None, ""):
            gateway = make_gateway(handler, endpoint=endpoint)
            assert await gateway.submit(entry) == DeliveryOutcome.FAILED
        assert calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("endpoint", ["http://[::1/exec", "not a url", "ftp://script.example.com/exec"])
    async def test_malformed_endpoint_treated_as_unset(self, entry, endpoint):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200)

        gateway = make_gateway(handler, endpoint=endpoint)

        assert gateway.endpoint_url is None
        assert await gateway.submit(entry) == DeliveryOutcome.FAILED
        assert await gateway.check_health() is None
        assert calls == []

    @pytest.mark.asyncio
    async def test_health_probe(self):
        handler = lambda request: httpx.Response(200, json={"status": "OK", "message": "running"})
        status = await make_gateway(handler).check_health()
        assert status["status"] == "OK"

    @pytest.mark.asyncio
    async def test_health_probe_unreachable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("down", request=request)

        assert await make_gateway(handler).check_health() is None
