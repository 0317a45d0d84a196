"""Flow tasks - list flows of a namespace and export flows as a zip."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from orchestra_taskkit.clients.models import FlowRef
from orchestra_taskkit.deps import Deps
from orchestra_taskkit.errors import MissingRequiredFieldError, ValidationError
from orchestra_taskkit.registry import TaskDef, register_task
from orchestra_taskkit.tasks.common import api_client

EXPORT_FILENAME = "exported_flows.zip"


def list_flows(inputs: dict[str, Any], deps: Deps) -> dict[str, Any]:
    """List the flows of a namespace.

    Args:
        inputs: Connection inputs, plus 'namespace' (optional, defaults to
            the namespace of the current flow).

    Returns:
        Dictionary with 'namespace', 'flows' and 'state_override'.
    """
    namespace = (inputs.get("namespace") or "").strip() or deps.taskkit.namespace
    if not namespace:
        raise MissingRequiredFieldError("namespace")

    client = api_client(inputs, deps)
    flows = client.list_flows(namespace)
    deps.logger.info(f"Found {len(flows)} flow(s) in namespace {namespace}")

    return {
        "namespace": namespace,
        "flows": [flow.to_output() for flow in flows],
        "state_override": None,
    }


def export(inputs: dict[str, Any], deps: Deps) -> dict[str, Any]:
    """Export flows as a zip archive.

    Args:
        inputs: Connection inputs, plus 'flows' (required): list of
            {"id": ..., "namespace": ...}.

    Returns:
        Dictionary with 'flows_zip' (storage URI), 'count' and 'state_override'.
    """
    try:
        refs = [FlowRef.model_validate(item) for item in inputs.get("flows") or []]
    except PydanticValidationError as e:
        raise ValidationError(
            "Each flow needs an 'id' and a 'namespace'", field="flows", value=inputs.get("flows")
        ) from e
    if not refs:
        raise MissingRequiredFieldError("flows")

    client = api_client(inputs, deps)
    deps.logger.info(f"Exporting {len(refs)} flow(s)")
    data = client.export_flows(refs)
    uri = deps.storage.put(data, EXPORT_FILENAME)
    deps.logger.info(f"Exported flows stored at {uri} ({len(data)} bytes)")

    return {"flows_zip": uri, "count": len(refs), "state_override": None}


# Register the tasks
register_task(
    TaskDef(
        name="flows.list",
        description="List the flows of a namespace",
        input_schema="flows.list/input.json",
        output_schema="flows.list/output.json",
        run=list_flows,
    )
)
register_task(
    TaskDef(
        name="flows.export",
        description="Export flows by id and namespace as a zip archive",
        input_schema="flows.export/input.json",
        output_schema="flows.export/output.json",
        run=export,
    )
)
