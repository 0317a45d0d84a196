"""orchestra-taskkit: tasks that drive a workflow-orchestration API."""

__version__ = "0.1.0"

from orchestra_taskkit.clients.api import ApiClient, Credentials, build_client
from orchestra_taskkit.deps import Deps, TaskkitEnv, build_deps
from orchestra_taskkit.messages import TaskkitMessages, empty_messages, write_messages
from orchestra_taskkit.outcomes import OutcomeCounts, OutcomeState, aggregate, count_outcomes
from orchestra_taskkit.pagination import PageResult, fetch_all
from orchestra_taskkit.registry import TaskDef, get_task, list_tasks
from orchestra_taskkit.render import render
from orchestra_taskkit.runner import run_task
from orchestra_taskkit.storage import LocalStorage, Storage

__all__ = [
    # Core
    "Deps",
    "TaskDef",
    "TaskkitEnv",
    "build_deps",
    "get_task",
    "list_tasks",
    "run_task",
    "render",
    # API client
    "ApiClient",
    "Credentials",
    "build_client",
    # Pagination and outcomes
    "PageResult",
    "fetch_all",
    "OutcomeCounts",
    "OutcomeState",
    "aggregate",
    "count_outcomes",
    # Artifacts
    "LocalStorage",
    "Storage",
    "TaskkitMessages",
    "empty_messages",
    "write_messages",
]
