"""Prometheus scrape endpoint."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST

from ..core.observability import get_prometheus_metrics

router = APIRouter(tags=["Observability"])


@router.get("/metrics", summary="Prometheus Metrics", response_class=Response)
async def metrics() -> Response:
    """Request, booking, payment and admin-update counters in text exposition format."""
    return Response(content=get_prometheus_metrics(), media_type=CONTENT_TYPE_LATEST)
