"""Unit tests for HTTPResultProvider."""

import json
from datetime import datetime, timezone

import httpx
import pytest

from arbor.adapters.results.http import HTTPResultProvider
from arbor.core.enricher import ResultEnricher
from arbor.core.models import TestItem, TestItemKind, TestState
from arbor.core.tree import TestTreeNode
from arbor.tests.fakes import make_class, make_project, make_solution

API_URL = "http://results.test"


@pytest.fixture
def method() -> TestItem:
    return TestItem(TestItemKind.METHOD, "MethodC", "ProjectA.ClassB.MethodC")


def _provider(handler, **kwargs) -> HTTPResultProvider:
    return HTTPResultProvider(
        api_url=API_URL + "/", transport=httpx.MockTransport(handler), **kwargs
    )


def test_returns_parsed_result(method: TestItem) -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200,
            json={
                "outcome": "Failed",
                "duration_ms": 12.5,
                "message": "expected 3, got 4",
                "stack_trace": "at ClassB.MethodC()",
                "recorded_at": "2024-01-01T12:00:00Z",
            },
        )

    with _provider(handler) as provider:
        result = provider.get_test_result(method)

    assert result is not None
    assert result.outcome == TestState.FAILED
    assert result.duration_ms == 12.5
    assert result.message == "expected 3, got 4"
    assert result.stack_trace == "at ClassB.MethodC()"
    assert result.recorded_at == datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    assert len(requests) == 1
    assert requests[0].method == "GET"
    assert requests[0].url.path == "/results/ProjectA.ClassB.MethodC"
    assert requests[0].headers["Accept"] == "application/json"
    assert "Authorization" not in requests[0].headers


def test_missing_result_returns_none(method: TestItem) -> None:
    with _provider(lambda request: httpx.Response(404)) as provider:
        assert provider.get_test_result(method) is None


def test_server_error_raises(method: TestItem) -> None:
    with _provider(lambda request: httpx.Response(500)) as provider:
        with pytest.raises(httpx.HTTPStatusError):
            provider.get_test_result(method)


def test_unreachable_service_raises(method: TestItem) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with _provider(handler) as provider:
        with pytest.raises(httpx.ConnectError):
            provider.get_test_result(method)


def test_non_method_items_rejected() -> None:
    item = make_class("ProjectA.ClassB", "MethodC")

    with _provider(lambda request: httpx.Response(404)) as provider:
        with pytest.raises(ValueError, match="only stored for methods"):
            provider.get_test_result(item)


def test_api_key_sent_as_bearer_token(method: TestItem) -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers.get("Authorization", ""))
        return httpx.Response(404)

    with _provider(handler, api_key="secret-token") as provider:
        provider.get_test_result(method)

    assert seen == ["Bearer secret-token"]


def test_unknown_outcome_is_inconclusive(method: TestItem) -> None:
    payload = {"outcome": "timed_out"}

    with _provider(lambda request: httpx.Response(200, json=payload)) as provider:
        result = provider.get_test_result(method)

    assert result is not None
    assert result.outcome == TestState.INCONCLUSIVE
    assert result.duration_ms == 0.0
    assert result.recorded_at is None


@pytest.mark.parametrize("payload", [["passed"], "passed", None, 42])
def test_non_object_body_rejected(method: TestItem, payload) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=json.dumps(payload))

    with _provider(handler) as provider:
        with pytest.raises(ValueError, match="expected a JSON object"):
            provider.get_test_result(method)


def test_special_characters_are_escaped() -> None:
    item = TestItem(TestItemKind.METHOD, "Adds(1, 2)", "ProjectA.Calc.Adds(1, 2)")
    paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.raw_path.decode("ascii"))
        return httpx.Response(404)

    with _provider(handler) as provider:
        provider.get_test_result(item)

    assert paths == ["/results/ProjectA.Calc.Adds%281%2C%202%29"]


def test_trailing_slash_stripped_from_url() -> None:
    provider = _provider(lambda request: httpx.Response(404))
    try:
        assert provider.api_url == API_URL
    finally:
        provider.close()


@pytest.mark.asyncio
async def test_enricher_with_http_provider() -> None:
    stored = {
        "/results/ProjectA.ClassB.MethodD": {"outcome": "passed", "duration_ms": 3},
        "/results/ProjectA.ClassE.MethodF": {"outcome": "skipped"},
    }

    def handler(request: httpx.Request) -> httpx.Response:
        payload = stored.get(request.url.path)
        if payload is None:
            return httpx.Response(404)
        return httpx.Response(200, content=json.dumps(payload))

    root = TestTreeNode(
        None,
        make_solution(
            make_project(
                "ProjectA",
                make_class("ProjectA.ClassB", "MethodC", "MethodD"),
                make_class("ProjectA.ClassE", "MethodF"),
            )
        ),
    )

    with _provider(handler) as provider:
        applied = await ResultEnricher(provider, max_workers=3).enrich(root)

    assert applied == 2
    method_c = root.find_by_path("ProjectA.ClassB.MethodC")
    method_d = root.find_by_path("ProjectA.ClassB.MethodD")
    method_f = root.find_by_path("ProjectA.ClassE.MethodF")
    assert method_c is not None and method_c.result is None
    assert method_d is not None and method_d.result.outcome == TestState.PASSED
    assert method_d.result.duration_ms == 3.0
    assert method_f is not None and method_f.result.outcome == TestState.SKIPPED
