"""Orchestration API client.

``build_client`` validates the authentication settings and returns an
``ApiClient`` bound to a base URL and a tenant. Nothing is sent until the
first API method is called.

Example:
    client = build_client(
        "http://localhost:8080",
        Credentials(api_token="..."),
        "main",
        http=deps.http,
    )
    execution = client.get_execution("4Lf1cyR8bRbN0oqQzHhUfj")
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, TypeVar

import httpx
from pydantic import ValidationError as PydanticValidationError

from orchestra_taskkit.clients.http import HTTPResponse, request
from orchestra_taskkit.clients.models import (
    ApiModel,
    Execution,
    Flow,
    FlowRef,
    PagedResults,
    TestRunByQueryResult,
    TestSuiteRunResult,
)
from orchestra_taskkit.errors import (
    ConflictingCredentialsError,
    ExecutionNotFoundError,
    IncompleteBasicAuthError,
    RemoteCallFailedError,
)

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:8080"
DEFAULT_TENANT = "main"

ModelT = TypeVar("ModelT", bound=ApiModel)


@dataclass(frozen=True)
class Credentials:
    """Authentication settings for the API.

    At most one mode may be used: a bearer token, or a username and
    password for HTTP Basic authentication. With neither, requests are sent
    unauthenticated.
    """

    api_token: str | None = None
    username: str | None = None
    password: str | None = None

    def __repr__(self) -> str:
        if self.api_token:
            mode = "token"
        elif self.username and self.password:
            mode = "basic"
        elif self.username or self.password:
            mode = "incomplete"
        else:
            mode = "none"
        return f"Credentials(mode={mode!r})"

    @classmethod
    def from_inputs(cls, auth: Mapping[str, Any] | None) -> Credentials:
        """Build from the ``auth`` block of task inputs."""
        if not auth:
            return cls()
        return cls(
            api_token=auth.get("api_token") or None,
            username=auth.get("username") or None,
            password=auth.get("password") or None,
        )


@dataclass
class ApiClient:
    """Authenticated handle on one tenant of the orchestration API.

    Attributes:
        base_url: Server root, without the /api/v1 suffix.
        tenant_id: Tenant all calls are scoped to.
        http: Underlying httpx client (owned by the caller).
        headers: Headers sent with every request.
        auth: httpx auth for HTTP Basic, if used.
    """

    base_url: str
    tenant_id: str
    http: httpx.Client
    headers: dict[str, str] = field(default_factory=dict)
    auth: httpx.Auth | None = None

    def _url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/api/v1/{self.tenant_id}/{path.lstrip('/')}"

    def _call(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | list[Any] | None = None,
        accept: str = "application/json",
    ) -> HTTPResponse:
        url = self._url(path)
        response = request(
            self.http,
            method,
            url,
            headers={**self.headers, "Accept": accept},
            params=params,
            json_body=json_body,
            auth=self.auth,
        )
        if not response.ok:
            raise RemoteCallFailedError(
                f"{method} {path} failed: {_error_message(response)}",
                status_code=response.status_code,
                url=url,
                method=method,
            )
        return response

    def _json(self, response: HTTPResponse) -> Any:
        if response.json is None:
            raise RemoteCallFailedError(
                "Expected a JSON response",
                status_code=response.status_code,
            )
        return response.json

    def _parse(self, response: HTTPResponse, model: type[ModelT]) -> ModelT:
        return self._parse_item(self._json(response), model)

    def _parse_item(self, data: Any, model: type[ModelT]) -> ModelT:
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            raise RemoteCallFailedError(
                f"Unexpected {model.__name__} payload: {e.error_count()} invalid field(s)"
            ) from e

    # Executions

    def search_executions(
        self,
        page: int,
        size: int,
        *,
        namespace: str | None = None,
        flow_id: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        time_range: str | None = None,
        states: list[str] | None = None,
        labels: Mapping[str, str] | None = None,
        scopes: list[str] | None = None,
        trigger_execution_id: str | None = None,
        child_filter: str | None = None,
    ) -> PagedResults:
        params = {
            "page": page,
            "size": size,
            "namespace": namespace,
            "flowId": flow_id,
            "startDate": start_date,
            "endDate": end_date,
            "timeRange": time_range,
            "state": states,
            "labels": [f"{k}:{v}" for k, v in (labels or {}).items()],
            "scope": scopes,
            "triggerExecutionId": trigger_execution_id,
            "childFilter": child_filter,
        }
        response = self._call("GET", "executions/search", params=params)
        return self._parse(response, PagedResults)

    def get_execution(self, execution_id: str) -> Execution:
        try:
            response = self._call("GET", f"executions/{execution_id}")
        except RemoteCallFailedError as e:
            if e.status_code == 404:
                raise ExecutionNotFoundError(execution_id, url=e.url) from e
            raise
        return self._parse(response, Execution)

    def delete_execution(
        self,
        execution_id: str,
        *,
        delete_logs: bool = True,
        delete_metrics: bool = True,
        delete_storage: bool = True,
    ) -> None:
        self._call(
            "DELETE",
            f"executions/{execution_id}",
            params={
                "deleteLogs": delete_logs,
                "deleteMetrics": delete_metrics,
                "deleteStorage": delete_storage,
            },
        )

    def kill_execution(self, execution_id: str, *, propagate_kill: bool = True) -> None:
        self._call(
            "DELETE",
            f"executions/{execution_id}/kill",
            params={"isOnKillCascade": propagate_kill},
        )

    # Flows and namespaces

    def list_flows(self, namespace: str) -> list[Flow]:
        response = self._call("GET", f"flows/{namespace}")
        return [self._parse_item(item, Flow) for item in self._json(response)]

    def export_flows(self, flows: list[FlowRef]) -> bytes:
        response = self._call(
            "POST",
            "flows/export/by-ids",
            json_body=[ref.to_output() for ref in flows],
            accept="application/octet-stream",
        )
        return response.content

    def list_distinct_namespaces(self, prefix: str = "") -> list[str]:
        response = self._call("GET", "flows/distinct-namespaces", params={"q": prefix or None})
        return [str(ns) for ns in self._json(response)]

    def search_namespaces(
        self,
        page: int,
        size: int,
        *,
        query: str | None = None,
        existing_only: bool = False,
    ) -> PagedResults:
        response = self._call(
            "GET",
            "namespaces/search",
            params={"page": page, "size": size, "q": query, "existing": existing_only},
        )
        return self._parse(response, PagedResults)

    # Test suites

    def run_test_suite(
        self, namespace: str, test_id: str, *, test_cases: list[str] | None = None
    ) -> TestSuiteRunResult:
        response = self._call(
            "POST",
            f"tests/{namespace}/{test_id}/run",
            json_body={"testCases": test_cases or []},
        )
        return self._parse(response, TestSuiteRunResult)

    def run_test_suites_by_query(
        self,
        *,
        namespace: str | None = None,
        include_child_namespaces: bool = True,
        flow_id: str | None = None,
    ) -> TestRunByQueryResult:
        body = {
            "namespace": namespace,
            "includeChildNamespaces": include_child_namespaces,
            "flowId": flow_id,
        }
        response = self._call(
            "POST", "tests/run", json_body={k: v for k, v in body.items() if v is not None}
        )
        return self._parse(response, TestRunByQueryResult)


def build_client(
    base_url: str | None,
    credentials: Credentials,
    tenant_id: str | None,
    *,
    http: httpx.Client,
) -> ApiClient:
    """Validate credentials and build an API client.

    Args:
        base_url: Server root; defaults to DEFAULT_API_URL.
        credentials: Token, basic or no authentication.
        tenant_id: Tenant to scope calls to; defaults to DEFAULT_TENANT.
        http: httpx client used for the calls.

    Returns:
        An ApiClient. No request is made.

    Raises:
        ConflictingCredentialsError: Token and username/password both given.
        IncompleteBasicAuthError: Only one of username/password given.
    """
    token = credentials.api_token
    username = credentials.username
    password = credentials.password

    if token and (username or password):
        raise ConflictingCredentialsError()
    if bool(username) != bool(password):
        raise IncompleteBasicAuthError(missing="password" if username else "username")

    headers: dict[str, str] = {}
    auth: httpx.Auth | None = None
    if token:
        headers["Authorization"] = f"Bearer {token}"
        mode = "token"
    elif username and password:
        auth = httpx.BasicAuth(username, password)
        mode = "basic"
    else:
        mode = "none"

    client = ApiClient(
        base_url=base_url or DEFAULT_API_URL,
        tenant_id=tenant_id or DEFAULT_TENANT,
        http=http,
        headers=headers,
        auth=auth,
    )
    logger.debug(f"API client for {client.base_url} (tenant={client.tenant_id}, auth={mode})")
    return client


def _error_message(response: HTTPResponse) -> str:
    """Extract the server's error message from a failed response."""
    if isinstance(response.json, dict):
        for key in ("message", "error", "detail"):
            if response.json.get(key):
                return str(response.json[key])
    return response.body.strip()[:200] or f"HTTP {response.status_code}"
