"""Prometheus metrics endpoint.

Scraped by Prometheus; returns plain text in the exposition format, e.g.

  # TYPE quiz_grades_posted_total counter
  quiz_grades_posted_total{outcome="passed"} 42.0

Restrict access at the ingress in production: request rates and failure
counts reveal more about the deployment than clients need to know.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Expose all Prometheus metrics in text exposition format."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
