import asyncio
import json
from pathlib import Path

import httpx
import pytest

from apidocs.config import Settings
from apidocs.errors import UnknownOperationError
from apidocs.models import normalize
from apidocs.sequencer import RequestSequencer
from apidocs.try_it import PreparedRequest, TryItExecutor, build_request

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def document():
    return normalize(json.loads((FIXTURES / "orders.json").read_text()))


class TestRequestSequencer:
    def test_latest_per_widget(self):
        seq = RequestSequencer()
        first = seq.next("a")
        second = seq.next("a")
        other = seq.next("b")
        assert second > first
        assert not seq.is_latest("a", first)
        assert seq.is_latest("a", second)
        assert seq.is_latest("b", other)

    def test_unknown_widget(self):
        assert RequestSequencer().is_latest("nope", 1) is False


class TestBuildRequest:
    def test_path_param_substituted(self, document):
        req = build_request(document, "/orders/{id}", "get", {"id": "42"})
        assert req.method == "GET"
        assert req.url == "https://api.shop.test/v1/orders/42"
        assert req.headers == {
            "Content-Type": "application/json",
            "Authorization": "Bearer {access_token}",
        }
        assert req.body is None

    def test_missing_path_param_left_in_place(self, document):
        req = build_request(document, "/orders/{id}", "get", {})
        assert req.url == "https://api.shop.test/v1/orders/{id}"

    def test_query_params_encoded_and_empty_skipped(self, document):
        req = build_request(document, "/orders", "get", {"status": "shipped now", "limit": ""})
        assert req.url == "https://api.shop.test/v1/orders?status=shipped%20now"

    def test_body_sent_for_post(self, document):
        req = build_request(document, "/orders", "post", body='{"customer_id": "c1"}')
        assert req.body == '{"customer_id": "c1"}'

    def test_body_ignored_for_get(self, document):
        req = build_request(document, "/orders", "get", body='{"x": 1}')
        assert req.body is None

    def test_no_auth_header_without_security(self):
        doc = normalize({"paths": {"/ping": {"get": {}}}})
        req = build_request(doc, "/ping", "get")
        assert "Authorization" not in req.headers
        assert req.url == "https://api.example.com/ping"

    def test_header_params(self):
        doc = normalize({"paths": {"/ping": {"get": {"parameters": [{"name": "X-Trace", "in": "header"}]}}}})
        req = build_request(doc, "/ping", "get", {"X-Trace": "abc"})
        assert req.headers["X-Trace"] == "abc"

    def test_unknown_operation(self, document):
        with pytest.raises(UnknownOperationError):
            build_request(document, "/nope", "get")


def _executor(handler, **settings):
    return TryItExecutor(Settings(**settings), transport=httpx.MockTransport(handler))


REQUEST = PreparedRequest(
    method="GET",
    url="https://api.shop.test/v1/orders/42",
    headers={"Content-Type": "application/json"},
)


class TestTryItExecutor:
    def test_success_pretty_prints_json(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"id": 42, "status": "open"})

        result = asyncio.run(_executor(handler).execute(REQUEST))
        assert result.status == 200
        assert result.reason == "OK"
        assert result.ok is True
        assert result.body == json.dumps({"id": 42, "status": "open"}, indent=2)
        assert result.elapsed_ms >= 0
        assert str(seen[0].url) == REQUEST.url
        assert seen[0].headers["content-type"] == "application/json"

    def test_error_status_not_ok(self):
        result = asyncio.run(_executor(lambda r: httpx.Response(404, text="missing")).execute(REQUEST))
        assert (result.status, result.ok, result.body) == (404, False, "missing")
        assert result.error is None

    def test_body_forwarded(self):
        bodies = []

        def handler(request):
            bodies.append(request.content)
            return httpx.Response(201)

        req = PreparedRequest(method="POST", url="https://api.shop.test/v1/orders", headers={}, body='{"a": 1}')
        result = asyncio.run(_executor(handler).execute(req))
        assert result.status == 201
        assert bodies == [b'{"a": 1}']

    def test_network_error_becomes_result(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        result = asyncio.run(_executor(handler).execute(REQUEST))
        assert result.status is None
        assert result.ok is False
        assert result.error.startswith("Error:")

    def test_stale_response_discarded(self):
        executor = None

        def handler(request):
            # A newer request on the same widget is issued while this one is in flight.
            executor.sequencer.next("get--orders--id-")
            return httpx.Response(200, json={})

        executor = _executor(handler)
        assert asyncio.run(executor.execute(REQUEST, widget="get--orders--id-")) is None

    def test_other_widget_not_affected(self):
        executor = None

        def handler(request):
            executor.sequencer.next("other")
            return httpx.Response(200, json={})

        executor = _executor(handler)
        assert asyncio.run(executor.execute(REQUEST, widget="get--orders--id-")) is not None

    def test_origin_allowlist(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200)

        executor = _executor(handler, allowed_try_it_origins="https://other.test, https://more.test/")
        result = asyncio.run(executor.execute(REQUEST))
        assert "not allowed" in result.error
        assert calls == []

        allowed = _executor(handler, allowed_try_it_origins="https://api.shop.test/")
        assert asyncio.run(allowed.execute(REQUEST)).status == 200
