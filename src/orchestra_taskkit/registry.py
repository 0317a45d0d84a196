"""Task registry - maps task names to their implementations."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from orchestra_taskkit.deps import Deps


# Type alias for task run functions
TaskRunFn = Callable[[dict[str, Any], "Deps"], dict[str, Any]]

# JSON schemas shipped with the package
SCHEMAS_ROOT = Path(__file__).parent / "schemas"


@dataclass(frozen=True)
class TaskDef:
    """Definition of a task.

    A task is a function of its inputs and injected dependencies that calls
    the orchestration API once (or once per page) and returns a JSON-ready
    output, backed by JSON schemas for validation.

    Attributes:
        name: Unique task identifier, "<group>.<action>" (e.g., "executions.kill").
        description: Human-readable description of what the task does.
        input_schema: Path to the input JSON schema, relative to the schemas root.
        output_schema: Path to the output JSON schema, relative to the schemas root.
        run: The task implementation function.
    """

    name: str
    description: str
    input_schema: str
    output_schema: str
    run: TaskRunFn

    @property
    def group(self) -> str:
        """Resource the task acts on (e.g., "executions")."""
        return self.name.split(".", 1)[0]

    def schema_path(
        self, kind: Literal["input", "output"], root: str | Path | None = None
    ) -> Path:
        """Resolve the input or output schema file."""
        base = Path(root) if root is not None else SCHEMAS_ROOT
        return base / (self.input_schema if kind == "input" else self.output_schema)


class TaskNotFoundError(Exception):
    """Raised when a requested task doesn't exist."""

    def __init__(self, name: str, available: list[str]) -> None:
        super().__init__(f"Task '{name}' not found. Available: {', '.join(available)}")
        self.name = name
        self.available = available


# The task registry - populated by tasks/__init__.py
_TASKS: dict[str, TaskDef] = {}


def register_task(task: TaskDef) -> TaskDef:
    """Register a task in the registry.

    Raises:
        ValueError: If a task with the same name is already registered.
    """
    if task.name in _TASKS:
        raise ValueError(f"Task '{task.name}' is already registered")
    _TASKS[task.name] = task
    return task


def get_task(name: str) -> TaskDef:
    """Get a task by name.

    Raises:
        TaskNotFoundError: If the task doesn't exist.
    """
    if name not in _TASKS:
        raise TaskNotFoundError(name, sorted(_TASKS))
    return _TASKS[name]


def list_tasks(group: str | None = None) -> list[TaskDef]:
    """List registered tasks, sorted by name, optionally for one group."""
    tasks = sorted(_TASKS.values(), key=lambda t: t.name)
    if group is not None:
        tasks = [t for t in tasks if t.group == group]
    return tasks
