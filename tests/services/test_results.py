"""The error-to-result boundary shared by every service operation."""

from __future__ import annotations

import asyncio

import pytest
from prometheus_client import REGISTRY

from lms.core.errors import AttemptLimitExceeded, NotFound, ValidationFailed
from lms.services.results import OperationResult, operation


def _failures(name: str, kind: str) -> float:
    value = REGISTRY.get_sample_value(
        "operation_failures_total", {"operation": name, "kind": kind}
    )
    return value or 0.0


@operation("ok_op", failure_message="never shown")
async def _ok() -> OperationResult:
    return OperationResult.ok("done", 42)


@operation("missing_op", failure_message="Failed to load.")
async def _missing() -> OperationResult:
    raise NotFound("Course not found.")


@operation("invalid_op", failure_message="Failed to save.")
async def _invalid() -> OperationResult:
    raise ValidationFailed("Invalid data provided.", ["weight must be > 0"])


@operation("limit_op", failure_message="Failed to submit.")
async def _limit() -> OperationResult:
    raise AttemptLimitExceeded("No attempts left for this quiz.")


@operation("crash_op", failure_message="Failed to submit quiz for review.")
async def _crash() -> OperationResult:
    raise KeyError("database went away")


def test_success_passes_through() -> None:
    result = asyncio.run(_ok())
    assert result.success
    assert result.data == 42
    assert result.kind is None


@pytest.mark.parametrize(
    ("fn", "kind", "message"),
    [
        (_missing, "not_found", "Course not found."),
        (_invalid, "validation", "Invalid data provided."),
        (_limit, "conflict", "No attempts left for this quiz."),
    ],
)
def test_domain_errors_become_failures(fn, kind: str, message: str) -> None:
    result = asyncio.run(fn())
    assert not result.success
    assert result.kind == kind
    assert result.message == message


def test_validation_errors_are_listed() -> None:
    assert asyncio.run(_invalid()).errors == ("weight must be > 0",)


def test_unexpected_error_gets_generic_message(caplog: pytest.LogCaptureFixture) -> None:
    before = _failures("crash_op", "unexpected")
    result = asyncio.run(_crash())
    assert not result.success
    assert result.kind == "unexpected"
    assert result.message == "Failed to submit quiz for review."
    assert "database went away" not in result.message
    assert "crash_op failed" in caplog.text
    assert _failures("crash_op", "unexpected") - before == 1
