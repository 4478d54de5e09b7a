from fastapi import APIRouter

from app.shiptrack.core.config import settings
from app.shiptrack.routers.batches import router as batches_router
from app.shiptrack.routers.health import router as health_router
from app.shiptrack.routers.metrics import router as metrics_router
from app.shiptrack.routers.shipments import router as shipments_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["ops"])
api_router.include_router(batches_router, tags=["batches"])
api_router.include_router(shipments_router, tags=["shipments"])
if settings.METRICS_ENABLED:
    api_router.include_router(metrics_router, tags=["ops"])
