"""Tests for templated input rendering."""

from __future__ import annotations

import pytest

from orchestra_taskkit.errors import RenderError
from orchestra_taskkit.render import render

CONTEXT = {
    "execution": {"id": "current-exec"},
    "flow": {"id": "nightly", "namespace": "company.team", "tenant_id": "acme"},
    "vars": {"target": "exec-42", "page_size": 25, "states": ["FAILED", "KILLED"]},
    "env": {"HOME": "/home/runner"},
}


class TestRender:
    def test_plain_values_unchanged(self):
        raw = {"size": 10, "propagate_kill": False, "namespace": "company.team"}

        assert render(raw, CONTEXT) == raw

    def test_single_expression_keeps_native_type(self):
        result = render({"size": "{{ vars.page_size }}", "states": "{{ vars.states }}"}, CONTEXT)

        assert result == {"size": 25, "states": ["FAILED", "KILLED"]}

    def test_mixed_template_renders_string(self):
        result = render({"prefix": "{{ flow.namespace }}.sub"}, CONTEXT)

        assert result == {"prefix": "company.team.sub"}

    def test_nested_structures(self):
        raw = {"flows": [{"id": "{{ flow.id }}", "namespace": "{{ flow.namespace }}"}]}

        assert render(raw, CONTEXT) == {
            "flows": [{"id": "nightly", "namespace": "company.team"}]
        }

    def test_execution_id_from_vars(self):
        assert render({"execution_id": "{{ vars.target }}"}, CONTEXT) == {
            "execution_id": "exec-42"
        }

    def test_undefined_single_expression_raises(self):
        with pytest.raises(RenderError) as exc_info:
            render({"execution_id": "{{ vars.missing }}"}, CONTEXT)

        assert exc_info.value.field == "execution_id"

    def test_undefined_in_larger_template_raises(self):
        with pytest.raises(RenderError) as exc_info:
            render({"flows": [{"id": "flow-{{ nope }}"}]}, CONTEXT)

        assert exc_info.value.field == "flows[0].id"

    def test_syntax_error_raises(self):
        with pytest.raises(RenderError, match="Cannot render"):
            render({"prefix": "{{ flow.namespace "}, CONTEXT)
