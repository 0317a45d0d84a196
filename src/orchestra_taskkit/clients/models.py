"""Response models for the orchestration API.

The API speaks camelCase JSON. Models accept both the wire names and the
Python names, and keep fields they do not declare so that results can be
passed through to task outputs untouched.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from orchestra_taskkit.outcomes import OutcomeState

# Execution states after which no further transition happens
TERMINAL_EXECUTION_STATES = frozenset(
    {"FAILED", "WARNING", "SUCCESS", "KILLED", "CANCELLED", "RETRIED", "SKIPPED"}
)


class ApiModel(BaseModel):
    """Base for API payloads."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    def to_output(self) -> dict[str, Any]:
        """Serialize back to the wire shape for task outputs."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ExecutionState(ApiModel):
    current: str
    histories: list[dict[str, Any]] = Field(default_factory=list)


class Execution(ApiModel):
    id: str
    namespace: str | None = None
    flow_id: str | None = None
    state: ExecutionState

    @property
    def is_terminated(self) -> bool:
        return self.state.current in TERMINAL_EXECUTION_STATES


class Flow(ApiModel):
    id: str
    namespace: str
    revision: int | None = None


class FlowRef(ApiModel):
    """Identifies a flow for export."""

    id: str
    namespace: str


class PagedResults(ApiModel):
    results: list[dict[str, Any]] = Field(default_factory=list)
    total: int = 0


class AssertionResult(ApiModel):
    operator: str | None = None
    expected: Any = None
    actual: Any = None
    is_success: bool = False
    description: str | None = None
    error_message: str | None = None

    def describe(self) -> str:
        status = "SUCCESS" if self.is_success else "FAILED"
        text = f"assertion {status}: expected {self.expected} {self.operator} {self.actual}"
        if self.description is not None:
            text += f"\ndescription: {self.description}"
        if self.error_message is not None:
            text += f"\nerror message: {self.error_message}"
        return text


class UnitTestError(ApiModel):
    message: str | None = None
    details: str | None = None

    def describe(self) -> str:
        text = self.message or ""
        if self.details is not None:
            text += f", details: {self.details}"
        return text


class UnitTestResult(ApiModel):
    """Outcome of one test case."""

    test_id: str
    state: OutcomeState
    execution_id: str | None = None
    url: str | None = None
    assertion_results: list[AssertionResult] = Field(default_factory=list)
    errors: list[UnitTestError] = Field(default_factory=list)


class TestSuiteRunResult(ApiModel):
    """Outcome of one test suite run."""

    __test__ = False

    id: str | None = None
    test_suite_id: str
    namespace: str
    flow_id: str | None = None
    state: OutcomeState
    results: list[UnitTestResult] = Field(default_factory=list)

    @property
    def full_id(self) -> str:
        return f"{self.namespace}.{self.test_suite_id}"


class TestRunByQueryResult(ApiModel):
    """Outcome of running every test suite matching a query."""

    __test__ = False

    results: list[TestSuiteRunResult] = Field(default_factory=list)
    number_of_test_suites_to_be_run: int | None = None
    number_of_test_cases_to_be_run: int | None = None
