"""Namespace tasks - search namespaces and list namespaces that hold flows."""

from __future__ import annotations

from typing import Any

from orchestra_taskkit.deps import Deps
from orchestra_taskkit.pagination import DEFAULT_PAGE_SIZE, PageResult, fetch_all
from orchestra_taskkit.registry import TaskDef, register_task
from orchestra_taskkit.tasks.common import api_client, optional_int


def list_namespaces(inputs: dict[str, Any], deps: Deps) -> dict[str, Any]:
    """Search namespaces by prefix.

    Args:
        inputs: Connection inputs, plus:
            - prefix (optional): namespace prefix, all namespaces when absent
            - page (optional): fetch only this page; all pages when absent
            - size (optional): page size, defaults to 10
            - existing_only (optional): skip namespaces without flows

    Returns:
        Dictionary with 'namespaces' (ids), 'total' and 'state_override'.
    """
    prefix = inputs.get("prefix") or None
    page = optional_int(inputs, "page")
    size = optional_int(inputs, "size", DEFAULT_PAGE_SIZE)
    existing_only = inputs.get("existing_only", False)

    client = api_client(inputs, deps)

    def fetch_page(page_number: int, page_size: int) -> PageResult[dict[str, Any]]:
        results = client.search_namespaces(
            page_number, page_size, query=prefix, existing_only=existing_only
        )
        return PageResult(items=results.results, total=results.total)

    found = fetch_all(fetch_page, page=page, size=size)
    namespaces = [str(item["id"]) for item in found.items if "id" in item]
    deps.logger.info(f"Found {len(namespaces)} of {found.total} namespace(s)")

    return {"namespaces": namespaces, "total": found.total, "state_override": None}


def with_flows(inputs: dict[str, Any], deps: Deps) -> dict[str, Any]:
    """List the distinct namespaces that contain flows.

    Args:
        inputs: Connection inputs, plus 'prefix' (optional).

    Returns:
        Dictionary with 'namespaces' and 'state_override'.
    """
    prefix = inputs.get("prefix") or ""

    client = api_client(inputs, deps)
    namespaces = client.list_distinct_namespaces(prefix)
    deps.logger.info(f"Found {len(namespaces)} namespace(s) with flows")

    return {"namespaces": namespaces, "state_override": None}


# Register the tasks
register_task(
    TaskDef(
        name="namespaces.list",
        description="Search namespaces by prefix",
        input_schema="namespaces.list/input.json",
        output_schema="namespaces.list/output.json",
        run=list_namespaces,
    )
)
register_task(
    TaskDef(
        name="namespaces.with_flows",
        description="List distinct namespaces that contain flows",
        input_schema="namespaces.with_flows/input.json",
        output_schema="namespaces.with_flows/output.json",
        run=with_flows,
    )
)
