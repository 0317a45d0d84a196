"""Task runner - orchestrates task execution with validation."""

from __future__ import annotations

import contextlib
import logging
import os
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from orchestra_taskkit.deps import build_deps
from orchestra_taskkit.errors import RenderError, TaskError
from orchestra_taskkit.io import read_json_object, write_output
from orchestra_taskkit.messages import (
    DEFAULT_MESSAGES_OUT,
    TaskkitMessages,
    empty_messages,
    write_messages,
)
from orchestra_taskkit.registry import TaskNotFoundError, get_task
from orchestra_taskkit.render import render
from orchestra_taskkit.schema import SchemaValidationError, load_schema, validate
from orchestra_taskkit.storage import Storage

logger = logging.getLogger(__name__)

# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VALIDATION_ERROR = 2
EXIT_TASK_NOT_FOUND = 3


def run_task(
    task_name: str,
    input_source: str,
    output_path: str,
    *,
    schemas_root: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    variables_source: str | None = None,
    messages_enabled: bool | None = None,
    messages_output_path: str | Path | None = None,
    storage: Storage | None = None,
) -> int:
    """Run a task with full validation.

    This is the main orchestration function that:
    1. Resolves the task definition
    2. Reads input (and host variables, if given)
    3. Builds dependencies
    4. Renders templated inputs against the run context
    5. Validates input against schema
    6. Executes the task
    7. Validates output against schema
    8. Writes output to file
    9. Records any state override and writes the messages artifact

    A state override (WARNING or FAILED) is not an error: the task ran and
    its output is written, the override is left to the host to act on.

    Args:
        task_name: Name of the task to run.
        input_source: Path to input JSON file or inline JSON string.
        output_path: Path to write the output JSON.
        schemas_root: Root directory containing task schemas (default: bundled schemas).
        env: Environment variables (defaults to os.environ).
        variables_source: Path or inline JSON object exposed as ``vars`` to templates.
        messages_enabled: Enable messages artifact (None=auto-detect based on /outputs).
        messages_output_path: Path to write messages JSON (default: /outputs/messages.json).
        storage: Artifact storage override (default: LocalStorage).

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    if env is None:
        env = os.environ

    # Configure logging for task output
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
        stream=sys.stderr,
    )

    logger.info(f"Starting task: {task_name}")

    # Auto-detect: enable if /outputs directory exists (host environment)
    if messages_enabled is None:
        messages_enabled = Path("/outputs").is_dir()
    msgs_out_path = (
        Path(messages_output_path) if messages_output_path else Path(DEFAULT_MESSAGES_OUT)
    )
    if messages_enabled:
        logger.info(f"Messages artifact enabled (out={msgs_out_path})")

    messages: TaskkitMessages = empty_messages()

    def fail(code: int, text: str, error_code: str, **data: Any) -> int:
        messages.add_error(text, code=error_code, source="runner", data=data or None)
        _write_artifacts_on_error(messages_enabled, msgs_out_path, messages)
        return code

    # 1. Resolve task definition
    try:
        task = get_task(task_name)
    except TaskNotFoundError as e:
        logger.error(f"Task not found: {task_name}")
        logger.error(f"Available tasks: {', '.join(e.available)}")
        return fail(
            EXIT_TASK_NOT_FOUND,
            f"Task not found: {task_name}",
            "TASK_NOT_FOUND",
            available=e.available,
        )

    # 2. Read input and host variables
    try:
        raw_input = read_json_object(input_source)
        variables = read_json_object(variables_source) if variables_source else {}
    except (OSError, ValueError) as e:
        logger.error(f"Failed to read input: {e}")
        return fail(EXIT_VALIDATION_ERROR, f"Failed to read input: {e}", "INPUT_READ_ERROR")

    try:
        with build_deps(env, variables=variables, storage=storage) as deps:
            # 3. Render templated inputs
            try:
                input_data = render(raw_input, deps.context)
            except RenderError as e:
                logger.error(f"Input rendering failed: {e}")
                return fail(EXIT_VALIDATION_ERROR, str(e), "INPUT_RENDER_ERROR")

            # 4. Validate input against schema
            input_schema_path = task.schema_path("input", schemas_root)
            try:
                validate(input_data, load_schema(input_schema_path))
                logger.info("Input validation passed")
            except FileNotFoundError:
                logger.error(f"Input schema not found: {input_schema_path}")
                return fail(
                    EXIT_VALIDATION_ERROR,
                    f"Input schema not found: {input_schema_path}",
                    "SCHEMA_NOT_FOUND",
                )
            except SchemaValidationError as e:
                logger.error(f"Input validation failed: {e}")
                for err in e.errors:
                    logger.error(f"  - {err}")
                return fail(
                    EXIT_VALIDATION_ERROR,
                    f"Input validation failed: {e}",
                    "INPUT_VALIDATION_ERROR",
                    errors=e.errors,
                )

            # 5. Execute task
            logger.info("Executing task...")
            output_data = task.run(input_data, deps)
    except TaskError as e:
        logger.error(f"Task execution failed: {e}")
        return fail(
            EXIT_RUNTIME_ERROR,
            f"Task execution failed: {e}",
            "TASK_EXECUTION_ERROR",
            error_type=type(e).__name__,
            **e.context,
        )
    except Exception as e:
        logger.exception(f"Task execution failed: {e}")
        return fail(EXIT_RUNTIME_ERROR, f"Task execution failed: {e}", "TASK_EXECUTION_ERROR")

    # 6. Validate output against schema
    output_schema_path = task.schema_path("output", schemas_root)
    try:
        validate(output_data, load_schema(output_schema_path))
        logger.info("Output validation passed")
    except FileNotFoundError:
        logger.error(f"Output schema not found: {output_schema_path}")
        return fail(
            EXIT_VALIDATION_ERROR,
            f"Output schema not found: {output_schema_path}",
            "SCHEMA_NOT_FOUND",
        )
    except SchemaValidationError as e:
        logger.error(f"Output validation failed: {e}")
        for err in e.errors:
            logger.error(f"  - {err}")
        return fail(
            EXIT_VALIDATION_ERROR,
            f"Output validation failed: {e}",
            "OUTPUT_VALIDATION_ERROR",
            errors=e.errors,
        )

    # 7. Write output
    try:
        write_output(output_path, output_data)
        logger.info(f"Output written to: {output_path}")
    except (OSError, TypeError) as e:
        logger.error(f"Failed to write output: {e}")
        return fail(EXIT_RUNTIME_ERROR, f"Failed to write output: {e}", "OUTPUT_WRITE_ERROR")

    # 8. Record state override
    state_override = output_data.get("state_override")
    if state_override:
        logger.warning(f"Task {task_name} reported state override: {state_override}")
        messages.add_state_override(state_override, task_name=task_name)

    # 9. Write messages artifact (if enabled)
    if messages_enabled:
        try:
            write_messages(msgs_out_path, messages)
            logger.info(
                f"Messages written to: {msgs_out_path} ({len(messages.messages)} message(s))"
            )
        except OSError as e:
            # Don't fail the task for artifact write errors
            logger.warning(f"Failed to write messages artifact: {e}")

    logger.info(f"Task {task_name} completed successfully")
    return EXIT_SUCCESS


def _write_artifacts_on_error(
    messages_enabled: bool,
    msgs_out_path: Path,
    messages: TaskkitMessages,
) -> None:
    """Write messages artifact when exiting early due to error.

    This ensures diagnostic information is available even on failures.
    Silently ignores write errors since we're already in an error path.
    """
    if messages_enabled:
        with contextlib.suppress(OSError):
            write_messages(msgs_out_path, messages)
