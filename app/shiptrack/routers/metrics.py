from fastapi import APIRouter, Response

from app.shiptrack.core.metrics import metrics

router = APIRouter()


@router.get("/shiptrack/ops/metrics", include_in_schema=False)
def get_metrics():
    snapshot = metrics.render()
    return Response(content=snapshot.content, media_type=snapshot.content_type)
