"""Tests for the execution tasks."""

from __future__ import annotations

import json
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

import pytest

from orchestra_taskkit.errors import (
    ConflictingCredentialsError,
    ExecutionNotFoundError,
    MissingRequiredFieldError,
    NotTerminatedError,
    SelfDeletionForbiddenError,
    ValidationError,
)
from orchestra_taskkit.tasks.executions import STORE_FILENAME, delete, kill, query


def paged_search(rows, fake_api):
    """Serve ``rows`` from executions/search, honouring page and size."""

    def handler(call):
        page, size = int(call.params["page"]), int(call.params["size"])
        start = (page - 1) * size
        return {"results": rows[start : start + size], "total": len(rows)}

    fake_api.on_call("GET", "executions/search", handler)


class TestQuery:
    """Tests for executions.query."""

    @pytest.fixture
    def rows(self):
        return [{"id": f"exec-{i}", "state": {"current": "SUCCESS"}} for i in range(15)]

    def test_fetch_collects_all_pages(self, fake_deps, fake_api, token_auth, rows):
        """Without a page every page is fetched."""
        paged_search(rows, fake_api)

        result = query({**token_auth, "fetch_type": "FETCH"}, fake_deps)

        assert result["size"] == 15
        assert result["rows"] == rows
        assert result["state_override"] is None
        assert [c.params["page"] for c in fake_api.calls] == [1, 2]

    def test_explicit_page(self, fake_deps, fake_api, rows):
        paged_search(rows, fake_api)

        result = query({"fetch_type": "FETCH", "page": 2, "size": 5}, fake_deps)

        assert result["rows"] == rows[5:10]
        assert result["size"] == 15
        assert len(fake_api.calls) == 1

    def test_store_writes_json_lines(self, fake_deps, fake_api, rows):
        """STORE is the default and writes one execution per line."""
        paged_search(rows, fake_api)

        result = query({}, fake_deps)

        assert result["size"] == 15
        assert "rows" not in result
        path = Path(url2pathname(urlparse(result["uri"]).path))
        assert path.name == STORE_FILENAME
        stored = [json.loads(line) for line in path.read_text().splitlines()]
        assert stored == rows

    def test_fetch_one_returns_first_row(self, fake_deps, fake_api, rows):
        paged_search(rows, fake_api)

        result = query({"fetch_type": "FETCH_ONE"}, fake_deps)

        assert result["row"] == rows[0]
        assert "rows" not in result

    def test_fetch_one_with_no_match(self, fake_deps, fake_api):
        paged_search([], fake_api)

        result = query({"fetch_type": "FETCH_ONE"}, fake_deps)

        assert result["size"] == 0
        assert "row" not in result
        assert len(fake_api.calls) == 1

    def test_filters_are_sent(self, fake_deps, fake_api):
        paged_search([], fake_api)

        query(
            {
                "namespace": "company.team",
                "flow_id": "nightly",
                "states": ["FAILED", "KILLED"],
                "labels": {"team": "data"},
                "flow_scopes": ["USER"],
            },
            fake_deps,
        )

        params = fake_api.calls[0].params
        assert params["namespace"] == "company.team"
        assert params["flowId"] == "nightly"
        assert params["state"] == ["FAILED", "KILLED"]
        assert params["labels"] == ["team:data"]
        assert params["scope"] == ["USER"]
        assert params["size"] == 10

    def test_uses_ambient_tenant(self, fake_deps, fake_api):
        paged_search([], fake_api)

        query({"fetch_type": "FETCH"}, fake_deps)

        assert fake_api.calls[0].tenant == "acme"

    def test_invalid_fetch_type(self, fake_deps):
        with pytest.raises(ValidationError) as exc_info:
            query({"fetch_type": "STREAM"}, fake_deps)

        assert exc_info.value.field == "fetch_type"

    def test_invalid_size(self, fake_deps):
        with pytest.raises(ValidationError):
            query({"size": 0}, fake_deps)


class TestDelete:
    """Tests for executions.delete."""

    def test_deletes_terminated_execution(
        self, fake_deps, fake_api, token_auth, execution_payload
    ):
        fake_api.on("GET", "executions/exec-42", execution_payload("exec-42", "SUCCESS"))
        fake_api.on("DELETE", "executions/exec-42", None, status=204)

        result = delete({**token_auth, "execution_id": "exec-42"}, fake_deps)

        assert result == {"execution_id": "exec-42", "state": "SUCCESS", "state_override": None}
        [call] = fake_api.calls_to("DELETE", "executions/exec-42")
        assert call.params == {
            "deleteLogs": "true",
            "deleteMetrics": "true",
            "deleteStorage": "true",
        }

    def test_cleanup_flags_are_forwarded(self, fake_deps, fake_api, execution_payload):
        fake_api.on("GET", "executions/exec-42", execution_payload("exec-42", "KILLED"))
        fake_api.on("DELETE", "executions/exec-42", None, status=204)

        delete(
            {"execution_id": "exec-42", "delete_logs": False, "delete_storage": False},
            fake_deps,
        )

        [call] = fake_api.calls_to("DELETE", "executions/exec-42")
        assert call.params["deleteLogs"] == "false"
        assert call.params["deleteMetrics"] == "true"
        assert call.params["deleteStorage"] == "false"

    def test_self_deletion_makes_no_call(self, fake_deps, fake_api):
        with pytest.raises(SelfDeletionForbiddenError):
            delete({"execution_id": "current-exec"}, fake_deps)

        assert fake_api.calls == []

    @pytest.mark.parametrize("state", ["RUNNING", "PAUSED", "QUEUED", "KILLING", "CREATED"])
    def test_refuses_running_execution(self, fake_deps, fake_api, execution_payload, state):
        fake_api.on("GET", "executions/exec-42", execution_payload("exec-42", state))

        with pytest.raises(NotTerminatedError) as exc_info:
            delete({"execution_id": "exec-42"}, fake_deps)

        assert exc_info.value.state == state
        assert state in str(exc_info.value)
        assert len(fake_api.calls_to("GET", "executions/exec-42")) == 1
        assert fake_api.calls_to("DELETE", "executions/exec-42") == []

    @pytest.mark.parametrize(
        "state", ["FAILED", "WARNING", "SUCCESS", "KILLED", "CANCELLED", "RETRIED", "SKIPPED"]
    )
    def test_every_terminal_state_is_deletable(
        self, fake_deps, fake_api, execution_payload, state
    ):
        fake_api.on("GET", "executions/exec-42", execution_payload("exec-42", state))
        fake_api.on("DELETE", "executions/exec-42", None, status=204)

        result = delete({"execution_id": "exec-42"}, fake_deps)

        assert result["state"] == state

    def test_missing_execution(self, fake_deps, fake_api):
        with pytest.raises(ExecutionNotFoundError):
            delete({"execution_id": "ghost"}, fake_deps)

        assert fake_api.calls_to("DELETE", "executions/ghost") == []

    @pytest.mark.parametrize("execution_id", [None, "", "   "])
    def test_blank_execution_id(self, fake_deps, fake_api, execution_id):
        with pytest.raises(MissingRequiredFieldError):
            delete({"execution_id": execution_id}, fake_deps)

        assert fake_api.calls == []

    def test_conflicting_auth_makes_no_call(self, fake_deps, fake_api):
        inputs = {
            "execution_id": "exec-42",
            "auth": {"api_token": "t", "username": "admin", "password": "pw"},
        }

        with pytest.raises(ConflictingCredentialsError):
            delete(inputs, fake_deps)

        assert fake_api.calls == []


class TestKill:
    """Tests for executions.kill."""

    def test_kill_propagates_by_default(self, fake_deps, fake_api, token_auth):
        fake_api.on("DELETE", "executions/exec-42/kill", None, status=202)

        result = kill({**token_auth, "execution_id": "exec-42"}, fake_deps)

        assert result == {
            "execution_id": "exec-42",
            "propagate_kill": True,
            "state_override": None,
        }
        assert fake_api.calls[0].params == {"isOnKillCascade": "true"}

    def test_kill_without_propagation(self, fake_deps, fake_api):
        fake_api.on("DELETE", "executions/exec-42/kill", None, status=202)

        result = kill({"execution_id": "exec-42", "propagate_kill": False}, fake_deps)

        assert result["propagate_kill"] is False
        assert fake_api.calls[0].params == {"isOnKillCascade": "false"}

    def test_explicit_tenant_and_url(self, fake_deps, fake_api):
        fake_api.on("DELETE", "executions/exec-42/kill", None, status=202)

        kill(
            {"execution_id": "exec-42", "tenant_id": "other", "url": "http://elsewhere.test"},
            fake_deps,
        )

        _, kwargs = fake_deps.http.request.call_args
        assert kwargs["url"].startswith("http://elsewhere.test/api/v1/other/")
        assert fake_api.calls[0].tenant == "other"

    def test_kill_requires_execution_id(self, fake_deps, fake_api):
        with pytest.raises(MissingRequiredFieldError):
            kill({}, fake_deps)

        assert fake_api.calls == []
