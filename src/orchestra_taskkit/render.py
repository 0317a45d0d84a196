"""Template rendering for task inputs.

String inputs may reference the run context with Jinja2 expressions:

    {"execution_id": "{{ vars.target }}", "namespace": "{{ flow.namespace }}"}

Rendering happens once, before validation, so tasks only see plain values.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateError, Undefined

from orchestra_taskkit.errors import RenderError

# "{{ expr }}" and nothing else: keep the native value instead of a string
_SINGLE_EXPRESSION = re.compile(r"^\{\{\s*([^{}]+?)\s*\}\}$")

_env = Environment(undefined=StrictUndefined, autoescape=False)


def render(raw: Any, context: Mapping[str, Any]) -> Any:
    """Render every templated string in ``raw`` against ``context``.

    Dicts and lists are rendered recursively; other values are returned
    unchanged.

    Raises:
        RenderError: If a template is invalid or references an undefined name.
    """
    return _render(raw, context, path="")


def _render(value: Any, context: Mapping[str, Any], *, path: str) -> Any:
    if isinstance(value, dict):
        return {
            key: _render(item, context, path=f"{path}.{key}" if path else str(key))
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [_render(item, context, path=f"{path}[{i}]") for i, item in enumerate(value)]
    if isinstance(value, str) and "{{" in value:
        return _render_string(value, context, path=path)
    return value


def _render_string(template: str, context: Mapping[str, Any], *, path: str) -> Any:
    try:
        match = _SINGLE_EXPRESSION.match(template)
        if match:
            result = _env.compile_expression(match.group(1), undefined_to_none=False)(**context)
            if isinstance(result, Undefined):
                raise RenderError(
                    f"Cannot render input: '{match.group(1)}' is undefined",
                    field=path or None,
                    value=template,
                )
            return result
        return _env.from_string(template).render(**context)
    except TemplateError as e:
        raise RenderError(f"Cannot render input: {e}", field=path or None, value=template) from e
