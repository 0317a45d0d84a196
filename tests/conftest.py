"""Pytest fixtures for orchestra-taskkit tests."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from orchestra_taskkit.deps import Deps, TaskkitEnv
from orchestra_taskkit.storage import LocalStorage

API_URL = "http://orchestrator.test"


def make_response(
    status_code: int = 200,
    body: Any = None,
    *,
    content: bytes | None = None,
) -> MagicMock:
    """Build a fake httpx response."""
    if content is not None:
        headers = {"content-type": "application/octet-stream"}
        text = content.decode(errors="replace")
    else:
        headers = {"content-type": "application/json"}
        text = json.dumps(body)
        content = text.encode()
    return MagicMock(
        status_code=status_code,
        json=lambda: body,
        text=text,
        content=content,
        headers=headers,
        elapsed=MagicMock(total_seconds=lambda: 0.01),
    )


@dataclass
class ApiCall:
    """A request received by FakeApi."""

    method: str
    tenant: str
    path: str
    params: dict[str, Any]
    json: Any
    headers: dict[str, str]
    auth: Any


@dataclass
class FakeApi:
    """Routes requests made through a mocked httpx client.

    Handlers are keyed by (method, path below /api/v1/<tenant>/) and receive
    the ApiCall; they return either a response mock or a JSON body.
    Unrouted requests get a 404.
    """

    handlers: dict[tuple[str, str], Callable[[ApiCall], Any]] = field(default_factory=dict)
    calls: list[ApiCall] = field(default_factory=list)

    def on(self, method: str, path: str, body: Any = None, *, status: int = 200) -> None:
        self.handlers[(method, path)] = lambda call: make_response(status, body)

    def on_call(self, method: str, path: str, handler: Callable[[ApiCall], Any]) -> None:
        self.handlers[(method, path)] = handler

    def calls_to(self, method: str, path: str) -> list[ApiCall]:
        return [c for c in self.calls if c.method == method and c.path == path]

    def __call__(self, method: str, url: str, **kwargs: Any) -> MagicMock:
        tenant, _, path = url.split("/api/v1/", 1)[1].partition("/")
        call = ApiCall(
            method=method,
            tenant=tenant,
            path=path,
            params=dict(kwargs.get("params") or {}),
            json=kwargs.get("json"),
            headers=dict(kwargs.get("headers") or {}),
            auth=kwargs.get("auth"),
        )
        self.calls.append(call)

        handler = self.handlers.get((method, path))
        if handler is None:
            return make_response(404, {"message": f"No route for {method} {path}"})
        result = handler(call)
        return result if isinstance(result, MagicMock) else make_response(200, result)


@pytest.fixture
def fake_taskkit_env() -> TaskkitEnv:
    """Create a fake TaskkitEnv for testing."""
    return TaskkitEnv(
        api_url=API_URL,
        tenant_id="acme",
        namespace="company.team",
        flow_id="nightly",
        execution_id="current-exec",
    )


@pytest.fixture
def fake_api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def fake_deps(fake_taskkit_env: TaskkitEnv, fake_api: FakeApi, tmp_path: Path) -> Deps:
    """Create a Deps instance whose HTTP client is served by fake_api."""
    mock_http = MagicMock()
    mock_http.request.side_effect = fake_api

    return Deps(
        http=mock_http,
        logger=logging.getLogger("test"),
        taskkit=fake_taskkit_env,
        storage=LocalStorage(tmp_path / "storage"),
        context={
            **fake_taskkit_env.render_context(),
            "vars": {"target": "exec-42"},
            "env": {"TEST_VAR": "test_value"},
        },
    )


@pytest.fixture
def token_auth() -> dict[str, Any]:
    """Connection inputs with bearer-token authentication."""
    return {"auth": {"api_token": "secret-token"}}


@pytest.fixture
def execution_payload() -> Callable[..., dict[str, Any]]:
    """Factory for execution JSON as returned by the API."""

    def build(execution_id: str, state: str) -> dict[str, Any]:
        return {
            "id": execution_id,
            "namespace": "company.team",
            "flowId": "nightly",
            "state": {"current": state, "histories": []},
        }

    return build


@pytest.fixture
def case_payload() -> Callable[..., dict[str, Any]]:
    """Factory for test case results as returned by the API."""

    def build(test_id: str, state: str, **extra: Any) -> dict[str, Any]:
        return {
            "testId": test_id,
            "state": state,
            "executionId": f"exec-{test_id}",
            "url": f"{API_URL}/ui/executions/exec-{test_id}",
            "assertionResults": [],
            "errors": [],
            **extra,
        }

    return build


@pytest.fixture
def suite_payload() -> Callable[..., dict[str, Any]]:
    """Factory for test suite run results as returned by the API."""

    def build(suite_id: str, state: str, cases: list[dict[str, Any]] | None = None) -> dict[str, Any]:
        return {
            "id": f"run-{suite_id}",
            "testSuiteId": suite_id,
            "namespace": "company.team",
            "flowId": "nightly",
            "state": state,
            "results": cases or [],
        }

    return build
