"""Typed exceptions for orchestra-taskkit.

All task-related errors should inherit from TaskError.
These provide structured error information for logging and debugging.
"""

from __future__ import annotations

from typing import Any


class TaskError(Exception):
    """Base exception for all task errors."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class ValidationError(TaskError):
    """Input or output validation failed."""

    def __init__(self, message: str, *, field: str | None = None, value: Any = None):
        context: dict[str, Any] = {}
        if field:
            context["field"] = field
        if value is not None:
            # Truncate long values for readability
            str_val = str(value)
            context["value"] = str_val[:100] + "..." if len(str_val) > 100 else str_val
        super().__init__(message, context=context)
        self.field = field
        self.value = value


class MissingRequiredFieldError(ValidationError):
    """A required input is absent or blank."""

    def __init__(self, field: str):
        super().__init__(f"The field '{field}' is required", field=field)


class RenderError(ValidationError):
    """A templated input could not be rendered."""


class AuthConfigError(TaskError):
    """Authentication settings are invalid."""


class ConflictingCredentialsError(AuthConfigError):
    """Both an API token and HTTP Basic credentials were supplied."""

    def __init__(self) -> None:
        super().__init__(
            "Cannot use both API token authentication and HTTP Basic authentication"
        )


class IncompleteBasicAuthError(AuthConfigError):
    """Only one of username/password was supplied."""

    def __init__(self, *, missing: str):
        super().__init__(
            "Both username and password are required for HTTP Basic authentication",
            context={"missing": missing},
        )
        self.missing = missing


class PreconditionError(TaskError):
    """The remote object is not in a state that allows the operation."""


class SelfDeletionForbiddenError(PreconditionError):
    """A task tried to delete the execution it runs in."""

    def __init__(self, execution_id: str):
        super().__init__(
            f"It's not allowed to delete the current execution {execution_id}",
            context={"execution_id": execution_id},
        )
        self.execution_id = execution_id


class NotTerminatedError(PreconditionError):
    """The target execution has not reached a terminal state."""

    def __init__(self, execution_id: str, state: str):
        super().__init__(
            f"Execution {execution_id} is not in a terminated state ({state})",
            context={"execution_id": execution_id, "state": state},
        )
        self.execution_id = execution_id
        self.state = state


class RemoteCallFailedError(TaskError):
    """A call to the orchestration API failed."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str | None = None,
        method: str = "GET",
    ):
        context = {"status_code": status_code, "url": url, "method": method}
        super().__init__(message, context={k: v for k, v in context.items() if v is not None})
        self.status_code = status_code
        self.url = url
        self.method = method


class ExecutionNotFoundError(RemoteCallFailedError):
    """The requested execution does not exist."""

    def __init__(self, execution_id: str, *, url: str | None = None):
        super().__init__(f"Execution {execution_id} not found", status_code=404, url=url)
        self.execution_id = execution_id


class TimeoutError(TaskError):
    """Operation timed out."""

    def __init__(self, message: str, *, timeout_seconds: float | None = None):
        context = {"timeout_seconds": timeout_seconds} if timeout_seconds else {}
        super().__init__(message, context=context)
        self.timeout_seconds = timeout_seconds
