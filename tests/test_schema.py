"""Tests for JSON schema validation of task inputs."""

from __future__ import annotations

import pytest

import orchestra_taskkit.tasks  # noqa: F401
from orchestra_taskkit.registry import get_task
from orchestra_taskkit.schema import SchemaValidationError, load_schema, validate


@pytest.fixture
def query_schema():
    return load_schema(get_task("executions.query").schema_path("input"))


class TestValidate:
    def test_valid_date_filters(self, query_schema):
        validate(
            {
                "start_date": "2024-01-15T00:00:00Z",
                "end_date": "2024-01-16T12:30:00+02:00",
                "time_range": "PT1H",
            },
            query_schema,
        )

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("start_date", "last tuesday"),
            ("end_date", "2024-13-45"),
            ("time_range", "one hour"),
            ("time_range", "1h"),
        ],
    )
    def test_malformed_date_filters(self, query_schema, field, value):
        with pytest.raises(SchemaValidationError) as exc_info:
            validate({field: value}, query_schema)

        assert any(field in error for error in exc_info.value.errors)

    def test_errors_sorted_by_location(self, query_schema):
        with pytest.raises(SchemaValidationError) as exc_info:
            validate({"time_range": "soon", "start_date": "later"}, query_schema)

        assert [error.split("'")[1] for error in exc_info.value.errors] == [
            "start_date",
            "time_range",
        ]
