"""Uniform result envelope for service operations.

Every public service operation returns an OperationResult instead of
raising.  The ``operation`` decorator is the only place domain errors
turn into failures, so the conversion (and its logging and metrics) is
identical across the service layer:

  LmsError subclass  -> failure with the error's own message and kind
  anything else      -> logged with traceback, failure with the
                        operation's generic message, kind "unexpected"
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, ParamSpec, TypeVar

from lms.core.errors import LmsError, ValidationFailed
from lms.core.metrics import OPERATION_FAILURES

logger = logging.getLogger(__name__)

T = TypeVar("T")
P = ParamSpec("P")


@dataclass(frozen=True, slots=True)
class OperationResult(Generic[T]):
    success: bool
    message: str
    data: T | None = None
    kind: str | None = None  # failure kind; None on success
    errors: tuple[str, ...] = ()

    @staticmethod
    def ok(message: str, data: Any = None) -> OperationResult:
        return OperationResult(success=True, message=message, data=data)

    @staticmethod
    def fail(
        message: str, kind: str = "error", errors: tuple[str, ...] = ()
    ) -> OperationResult:
        return OperationResult(success=False, message=message, kind=kind, errors=errors)


def operation(
    name: str, *, failure_message: str
) -> Callable[
    [Callable[P, Awaitable[OperationResult]]],
    Callable[P, Awaitable[OperationResult]],
]:
    """Wrap an async service function in the error-to-result boundary."""

    def decorator(
        fn: Callable[P, Awaitable[OperationResult]],
    ) -> Callable[P, Awaitable[OperationResult]]:
        @functools.wraps(fn)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> OperationResult:
            try:
                return await fn(*args, **kwargs)
            except LmsError as exc:
                logger.warning("%s refused (%s): %s", name, exc.kind, exc.message)
                OPERATION_FAILURES.labels(operation=name, kind=exc.kind).inc()
                errors = tuple(exc.errors) if isinstance(exc, ValidationFailed) else ()
                return OperationResult.fail(exc.message, exc.kind, errors)
            except Exception:
                logger.exception("%s failed", name)
                OPERATION_FAILURES.labels(operation=name, kind="unexpected").inc()
                return OperationResult.fail(failure_message, "unexpected")

        return wrapper

    return decorator
