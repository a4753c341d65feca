"""Response envelope shared by every /v1 route.

Routes hand the service's OperationResult to ``respond`` together with
the pydantic model for its data.  Failures keep the same envelope; only
the HTTP status changes with the failure kind.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Generic, TypeVar

from fastapi import Response, status
from pydantic import BaseModel

from lms.services.results import OperationResult

DataT = TypeVar("DataT")

STATUS_BY_KIND = {
    "validation": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "referential": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "not_found": status.HTTP_404_NOT_FOUND,
    "conflict": status.HTTP_409_CONFLICT,
    "forbidden": status.HTTP_403_FORBIDDEN,
    "unexpected": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class ResultOut(BaseModel, Generic[DataT]):
    success: bool
    message: str
    data: DataT | None = None
    errors: list[str] = []


def respond(
    result: OperationResult,
    response: Response,
    convert: Callable[[Any], Any] | None = None,
    *,
    success_status: int = status.HTTP_200_OK,
) -> ResultOut:
    if not result.success:
        response.status_code = STATUS_BY_KIND.get(
            result.kind or "", status.HTTP_400_BAD_REQUEST
        )
        return ResultOut(
            success=False, message=result.message, errors=list(result.errors)
        )
    response.status_code = success_status
    data = result.data
    if convert is not None and data is not None:
        data = convert(data)
    return ResultOut(success=True, message=result.message, data=data)
