# /app/observability/metrics.py
from fastapi import APIRouter, Response
from prometheus_client import REGISTRY, CONTENT_TYPE_LATEST, generate_latest

from observability.http_metrics import HTTPMetricsMiddleware

router = APIRouter(tags=["metrics"])


@router.get("/metrics")
def metrics():
    return Response(generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)


def install_http_metrics(app) -> None:
    app.add_middleware(HTTPMetricsMiddleware)
