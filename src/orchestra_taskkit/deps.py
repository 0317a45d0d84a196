"""Dependency injection for task implementations."""

from __future__ import annotations

import logging
import tempfile
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

import httpx

from orchestra_taskkit.clients.api import DEFAULT_TENANT
from orchestra_taskkit.storage import LocalStorage, Storage

logger = logging.getLogger(__name__)

# Environment variable prefixes and keys
TASKKIT_ENV_PREFIX = "TASKKIT_"
DEFAULT_HTTP_TIMEOUT = 30.0


@dataclass(frozen=True)
class TaskkitEnv:
    """Structured access to TASKKIT_* environment variables.

    These are injected by the orchestration engine to describe the
    execution the task runs in.

    Attributes:
        api_url: Default API base URL when the task input has none.
        tenant_id: Tenant of the current execution.
        namespace: Namespace of the current flow.
        flow_id: Id of the current flow.
        execution_id: Id of the current execution.
        storage_dir: Root directory for stored artifacts.
        http_timeout: HTTP timeout in seconds.
    """

    api_url: str | None = None
    tenant_id: str | None = None
    namespace: str | None = None
    flow_id: str | None = None
    execution_id: str | None = None
    storage_dir: str | None = None
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    def resolve_tenant(self, tenant_id: str | None) -> str:
        """Pick the tenant for a call: explicit, then ambient, then the default."""
        return tenant_id or self.tenant_id or DEFAULT_TENANT

    def render_context(self) -> dict[str, Any]:
        """Variables exposed to templated inputs."""
        return {
            "execution": {"id": self.execution_id},
            "flow": {
                "id": self.flow_id,
                "namespace": self.namespace,
                "tenant_id": self.tenant_id,
            },
        }

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> TaskkitEnv:
        """Build from environment variables.

        Args:
            env: Environment variables mapping (typically os.environ).

        Returns:
            TaskkitEnv with values parsed from TASKKIT_* variables.
        """
        return cls(
            api_url=env.get("TASKKIT_API_URL") or None,
            tenant_id=env.get("TASKKIT_TENANT_ID") or None,
            namespace=env.get("TASKKIT_NAMESPACE") or None,
            flow_id=env.get("TASKKIT_FLOW_ID") or None,
            execution_id=env.get("TASKKIT_EXECUTION_ID") or None,
            storage_dir=env.get("TASKKIT_STORAGE_DIR") or None,
            http_timeout=float(env.get("TASKKIT_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT)),
        )


@dataclass(frozen=True)
class Deps:
    """Dependencies injected into task functions.

    This container holds all external dependencies that tasks need.
    Tasks receive this as a parameter, making them testable with fake deps.

    Attributes:
        http: HTTP client for API calls.
        logger: Logger instance for task output.
        taskkit: Structured access to TASKKIT_* environment variables.
        storage: Artifact storage for large outputs.
        context: Read-only variables available to templated inputs.
    """

    http: httpx.Client
    logger: logging.Logger
    taskkit: TaskkitEnv
    storage: Storage
    context: Mapping[str, Any]


@contextmanager
def build_deps(
    env: Mapping[str, str],
    *,
    timeout: float | None = None,
    variables: Mapping[str, Any] | None = None,
    storage: Storage | None = None,
) -> Iterator[Deps]:
    """Build dependencies for task execution.

    This is a context manager that properly cleans up resources.

    Args:
        env: Environment variables mapping (typically os.environ).
        timeout: HTTP client timeout in seconds (default: TASKKIT_HTTP_TIMEOUT).
        variables: Host-supplied variables, exposed as ``vars`` when rendering.
        storage: Artifact storage (default: LocalStorage under TASKKIT_STORAGE_DIR).

    Yields:
        A Deps instance with all dependencies wired up.

    Example:
        with build_deps(os.environ) as deps:
            result = my_task(inputs, deps)

        with build_deps(os.environ, variables={"target": "abc"}) as deps:
            result = my_task(inputs, deps)
    """
    taskkit_env = TaskkitEnv.from_env(env)

    context = {**taskkit_env.render_context(), "vars": dict(variables or {}), "env": dict(env)}

    if storage is None:
        root = taskkit_env.storage_dir or str(Path(tempfile.gettempdir()) / "taskkit-storage")
        storage = LocalStorage(root)

    http_client = httpx.Client(
        timeout=timeout if timeout is not None else taskkit_env.http_timeout,
        follow_redirects=True,
    )

    try:
        yield Deps(
            http=http_client,
            logger=logging.getLogger("orchestra_taskkit.task"),
            taskkit=taskkit_env,
            storage=storage,
            context=MappingProxyType(context),
        )
    finally:
        http_client.close()
