"""JSON Schema validation of task inputs and outputs."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

import jsonschema
from jsonschema import Draft202012Validator


class SchemaValidationError(Exception):
    """Raised when input or output fails schema validation."""

    def __init__(self, message: str, errors: list[str]) -> None:
        super().__init__(message)
        self.errors = errors


def load_schema(path: str | Path) -> dict[str, Any]:
    """Load a JSON schema from a file path.

    Raises:
        FileNotFoundError: If the schema file doesn't exist.
        json.JSONDecodeError: If the file contains invalid JSON.
    """
    return dict(_load_schema(str(Path(path).resolve())))


@lru_cache(maxsize=64)
def _load_schema(path: str) -> dict[str, Any]:
    with open(path) as f:
        return json.load(f)


def validate(instance: Any, schema: dict[str, Any]) -> None:
    """Validate an instance against a JSON schema.

    Declared formats (date-time, duration) are checked. Errors are reported
    sorted by location so messages are stable.

    Raises:
        SchemaValidationError: If validation fails.
    """
    validator = Draft202012Validator(schema, format_checker=Draft202012Validator.FORMAT_CHECKER)
    errors = sorted(validator.iter_errors(instance), key=lambda e: [str(p) for p in e.absolute_path])

    if errors:
        error_messages = [_format_validation_error(e) for e in errors]
        raise SchemaValidationError(
            f"Schema validation failed with {len(errors)} error(s)",
            error_messages,
        )


def _format_validation_error(error: jsonschema.ValidationError) -> str:
    """Format a validation error into a human-readable string."""
    path = ".".join(str(p) for p in error.absolute_path) or "(root)"
    return f"At '{path}': {error.message}"
