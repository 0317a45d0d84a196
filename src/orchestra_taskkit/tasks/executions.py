"""Execution tasks - search, delete and kill executions.

- executions.query: search executions, one page or all of them
- executions.delete: delete a terminated execution
- executions.kill: kill an execution, optionally with its children
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from orchestra_taskkit.deps import Deps
from orchestra_taskkit.errors import (
    NotTerminatedError,
    SelfDeletionForbiddenError,
    ValidationError,
)
from orchestra_taskkit.pagination import DEFAULT_PAGE_SIZE, PageResult, fetch_all
from orchestra_taskkit.registry import TaskDef, register_task
from orchestra_taskkit.storage import to_json_lines
from orchestra_taskkit.tasks.common import api_client, optional_int, require

STORE_FILENAME = "executions.jsonl"


class FetchType(str, Enum):
    """How query results are handed back."""

    STORE = "STORE"
    FETCH = "FETCH"
    FETCH_ONE = "FETCH_ONE"


def query(inputs: dict[str, Any], deps: Deps) -> dict[str, Any]:
    """Search executions.

    Args:
        inputs: Connection inputs, plus:
            - page (optional): fetch only this page; all pages when absent
            - size (optional): page size, defaults to 10
            - fetch_type (optional): STORE (default), FETCH or FETCH_ONE
            - namespace, flow_id, start_date, end_date, time_range, states,
              labels, flow_scopes, trigger_execution_id, child_filter
              (optional): search filters

    Returns:
        Dictionary with:
            - size: total number of matching executions reported by the server
            - uri: storage URI of a JSON Lines file (STORE)
            - rows: list of executions (FETCH)
            - row: first execution, absent when nothing matched (FETCH_ONE)
            - state_override: always None
    """
    page = optional_int(inputs, "page")
    size = optional_int(inputs, "size", DEFAULT_PAGE_SIZE)
    try:
        fetch_type = FetchType(inputs.get("fetch_type") or FetchType.STORE)
    except ValueError as e:
        raise ValidationError(
            "Invalid fetch type", field="fetch_type", value=inputs.get("fetch_type")
        ) from e

    filters = {
        "namespace": inputs.get("namespace"),
        "flow_id": inputs.get("flow_id"),
        "start_date": inputs.get("start_date"),
        "end_date": inputs.get("end_date"),
        "time_range": inputs.get("time_range"),
        "states": inputs.get("states"),
        "labels": inputs.get("labels"),
        "scopes": inputs.get("flow_scopes"),
        "trigger_execution_id": inputs.get("trigger_execution_id"),
        "child_filter": inputs.get("child_filter"),
    }
    client = api_client(inputs, deps)

    def fetch_page(page_number: int, page_size: int) -> PageResult[dict[str, Any]]:
        results = client.search_executions(page_number, page_size, **filters)
        return PageResult(items=results.results, total=results.total)

    deps.logger.info(
        f"Searching executions (page={page if page is not None else 'all'}, size={size})"
    )
    found = fetch_all(fetch_page, page=page, size=size)
    deps.logger.info(f"Fetched {len(found.items)} of {found.total} execution(s)")

    output: dict[str, Any] = {"size": found.total, "state_override": None}
    if fetch_type == FetchType.STORE:
        output["uri"] = deps.storage.put(to_json_lines(found.items), STORE_FILENAME)
    elif fetch_type == FetchType.FETCH:
        output["rows"] = found.items
    elif found.items:
        output["row"] = found.items[0]
    return output


def delete(inputs: dict[str, Any], deps: Deps) -> dict[str, Any]:
    """Delete an execution that has reached a terminal state.

    Args:
        inputs: Connection inputs, plus:
            - execution_id (required): execution to delete, not the current one
            - delete_logs (optional): also delete its logs, defaults to true
            - delete_metrics (optional): also delete its metrics, defaults to true
            - delete_storage (optional): also delete its files, defaults to true

    Returns:
        Dictionary with 'execution_id', 'state' (state before deletion) and
        'state_override' (always None).

    Raises:
        MissingRequiredFieldError: execution_id is missing or blank.
        SelfDeletionForbiddenError: execution_id is the current execution.
        ExecutionNotFoundError: the execution does not exist.
        NotTerminatedError: the execution is still running.
    """
    execution_id = require(inputs, "execution_id")
    delete_logs = inputs.get("delete_logs", True)
    delete_metrics = inputs.get("delete_metrics", True)
    delete_storage = inputs.get("delete_storage", True)

    if execution_id == deps.taskkit.execution_id:
        raise SelfDeletionForbiddenError(execution_id)

    deps.logger.info(
        f"Deleting execution {execution_id} with deleteLogs={delete_logs}, "
        f"deleteMetrics={delete_metrics}, deleteStorage={delete_storage}"
    )

    client = api_client(inputs, deps)
    execution = client.get_execution(execution_id)
    if not execution.is_terminated:
        raise NotTerminatedError(execution_id, execution.state.current)

    client.delete_execution(
        execution_id,
        delete_logs=delete_logs,
        delete_metrics=delete_metrics,
        delete_storage=delete_storage,
    )
    deps.logger.debug(f"Successfully deleted execution {execution_id}")

    return {
        "execution_id": execution_id,
        "state": execution.state.current,
        "state_override": None,
    }


def kill(inputs: dict[str, Any], deps: Deps) -> dict[str, Any]:
    """Kill an execution.

    Pass the current execution id (e.g. "{{ execution.id }}") to kill the
    execution the task runs in.

    Args:
        inputs: Connection inputs, plus:
            - execution_id (required): execution to kill
            - propagate_kill (optional): also kill child executions, defaults to true

    Returns:
        Dictionary with 'execution_id', 'propagate_kill' and 'state_override'.
    """
    execution_id = require(inputs, "execution_id")
    propagate_kill = inputs.get("propagate_kill", True)

    deps.logger.info(f"Killing execution {execution_id} with propagateKill={propagate_kill}")

    client = api_client(inputs, deps)
    client.kill_execution(execution_id, propagate_kill=propagate_kill)
    deps.logger.debug(f"Successfully killed execution {execution_id}")

    return {
        "execution_id": execution_id,
        "propagate_kill": propagate_kill,
        "state_override": None,
    }


# Register the tasks
register_task(
    TaskDef(
        name="executions.query",
        description="Search executions, one page or all pages",
        input_schema="executions.query/input.json",
        output_schema="executions.query/output.json",
        run=query,
    )
)
register_task(
    TaskDef(
        name="executions.delete",
        description="Delete a terminated execution and its logs, metrics and files",
        input_schema="executions.delete/input.json",
        output_schema="executions.delete/output.json",
        run=delete,
    )
)
register_task(
    TaskDef(
        name="executions.kill",
        description="Kill an execution, optionally with its child executions",
        input_schema="executions.kill/input.json",
        output_schema="executions.kill/output.json",
        run=kill,
    )
)
