"""Task implementations - imported to register tasks."""

# Import all tasks to register them
from orchestra_taskkit.tasks import (
    executions,
    flows,
    namespaces,
    unit_tests,
)

__all__ = [
    "executions",
    "flows",
    "namespaces",
    "unit_tests",
]
