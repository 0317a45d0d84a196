"""Input/output handling utilities."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


def read_json_object(source: str) -> dict[str, Any]:
    """Read a JSON object from a file path or an inline JSON string.

    Args:
        source: Either a path to a JSON file, or an inline JSON string.

    Returns:
        The parsed object.

    Raises:
        OSError: If the file cannot be read.
        json.JSONDecodeError: If the input is not valid JSON.
        ValueError: If the JSON document is not an object.
    """
    # Inline JSON can be longer than the OS allows for a file name
    if source.lstrip().startswith(("{", "[")):
        data = json.loads(source)
    else:
        with open(Path(source)) as f:
            data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def write_output(dest: str | Path, obj: Any) -> None:
    """Write output to a JSON file.

    Raises:
        TypeError: If obj is not JSON serializable.
    """
    dest_path = Path(dest)

    # Ensure parent directory exists
    dest_path.parent.mkdir(parents=True, exist_ok=True)

    with open(dest_path, "w") as f:
        json.dump(obj, f, indent=2, default=str)
        f.write("\n")  # Trailing newline for POSIX compliance
