"""Input helpers shared by the API tasks.

Every API task accepts the same connection inputs:
    - url (optional): API base URL, defaults to TASKKIT_API_URL then localhost
    - auth (optional): {"api_token": ...} or {"username": ..., "password": ...}
    - tenant_id (optional): defaults to the current tenant, then "main"
"""

from __future__ import annotations

from typing import Any

from orchestra_taskkit.clients.api import ApiClient, Credentials, build_client
from orchestra_taskkit.deps import Deps
from orchestra_taskkit.errors import MissingRequiredFieldError, ValidationError


def api_client(inputs: dict[str, Any], deps: Deps) -> ApiClient:
    """Build an API client from the connection inputs."""
    return build_client(
        inputs.get("url") or deps.taskkit.api_url,
        Credentials.from_inputs(inputs.get("auth")),
        deps.taskkit.resolve_tenant(inputs.get("tenant_id")),
        http=deps.http,
    )


def require(inputs: dict[str, Any], field: str) -> str:
    """Return a required string input, rejecting missing or blank values."""
    value = inputs.get(field)
    if value is None or not str(value).strip():
        raise MissingRequiredFieldError(field)
    return str(value)


def optional_int(inputs: dict[str, Any], field: str, default: int | None = None) -> int | None:
    value = inputs.get(field)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError(f"'{field}' must be a positive integer", field=field, value=value)
    return value
