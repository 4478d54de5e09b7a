from fastapi import FastAPI

from app.shiptrack.api import api_router
from app.shiptrack.core.config import settings
from app.shiptrack.core.errors import setup_exception_handlers
from app.shiptrack.core.logging import configure_logging
from app.shiptrack.middleware.identity import IdentityContextMiddleware
from app.shiptrack.middleware.observability import ObservabilityMiddleware
from app.shiptrack.middleware.trace import TraceIdMiddleware


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title=settings.APP_NAME)
    app.add_middleware(IdentityContextMiddleware)
    app.add_middleware(TraceIdMiddleware)
    app.add_middleware(ObservabilityMiddleware)
    setup_exception_handlers(app)
    app.include_router(api_router)
    return app


app = create_app()
