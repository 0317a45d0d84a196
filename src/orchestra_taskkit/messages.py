"""Messages artifact for task diagnostics.

The runner records what the host needs to route a finished task without
parsing logs: failures that stopped the task, and state overrides reported
by tasks that completed with a degraded outcome.

Message format:
    {"version": "taskkit-messages/v1", "messages": [...]}

Message structure:
    {"level": "error|warning|info", "message": "...", "code": "...", "source": "...", "data": {...}}
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal

# Constants
MESSAGES_VERSION = "taskkit-messages/v1"
DEFAULT_MESSAGES_OUT = "/outputs/messages.json"

# Type alias for message levels
MessageLevel = Literal["info", "warning", "error"]


@dataclass(frozen=True)
class TaskkitMessage:
    """Single diagnostic message.

    Attributes:
        level: Severity level (info, warning, error).
        message: Human-readable description.
        code: Optional machine-readable code.
        source: Task or component that generated the message.
        timestamp: When the message was created (ISO 8601).
        data: Optional structured data for debugging.
    """

    level: MessageLevel
    message: str
    code: str | None = None
    source: str | None = None
    timestamp: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: dict[str, Any] = {
            "level": self.level,
            "message": self.message,
        }
        if self.code:
            result["code"] = self.code
        if self.source:
            result["source"] = self.source
        if self.timestamp:
            result["timestamp"] = self.timestamp
        if self.data:
            result["data"] = self.data
        return result


@dataclass
class TaskkitMessages:
    """Container for diagnostic messages."""

    version: str = MESSAGES_VERSION
    messages: list[TaskkitMessage] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "version": self.version,
            "messages": [m.to_dict() for m in self.messages],
        }

    def add(
        self,
        level: MessageLevel,
        message: str,
        *,
        code: str | None = None,
        source: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        self.messages.append(
            TaskkitMessage(
                level=level,
                message=message,
                code=code,
                source=source,
                timestamp=datetime.now(UTC).isoformat(),
                data=data or {},
            )
        )

    def add_error(self, message: str, **kwargs: Any) -> None:
        self.add("error", message, **kwargs)

    def add_state_override(self, state: str, *, task_name: str) -> None:
        """Record a degraded outcome: FAILED as an error, anything else as a warning."""
        level: MessageLevel = "error" if state == "FAILED" else "warning"
        self.add(
            level,
            f"Task {task_name} completed with state override {state}",
            code="STATE_OVERRIDE",
            source=task_name,
            data={"state": state},
        )


def empty_messages() -> TaskkitMessages:
    """Create an empty messages container."""
    return TaskkitMessages(version=MESSAGES_VERSION, messages=[])


def write_messages(path: str | Path, messages: TaskkitMessages) -> None:
    """Write messages to a JSON file, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        json.dump(messages.to_dict(), f, indent=2, default=str)
        f.write("\n")  # Trailing newline for POSIX compliance
