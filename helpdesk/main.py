"""Application factory and top-level wiring for the helpdesk API.

Brings together configuration, logging, database setup, routers and error
handling. ``app`` is the ASGI entry point (``uvicorn helpdesk.main:app``).
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .core.errors import (
    HelpdeskError,
    helpdesk_exception_handler,
    http_exception_handler,
    storage_exception_handler,
    validation_exception_handler,
)
from .core.logging import configure_logging
from .db.migrate import run_migrations
from .db.session import Base, engine
from .middlewares import RequestIdMiddleware

# Importing the models registers them with the metadata. Without this step
# ``Base.metadata.create_all`` would not know about our tables.
from . import models as _models  # noqa: F401
from .routers import api_auth, api_comments, api_labels, api_tickets, api_users

logger = logging.getLogger("helpdesk.app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ``create_all`` covers brand-new databases; ``run_migrations`` upgrades
    # existing installations in place.
    Base.metadata.create_all(bind=engine)
    run_migrations(engine)
    logger.info("app.started", extra={"extra_data": {"env": settings.APP_ENV}})
    yield


def create_app() -> FastAPI:
    configure_logging(settings.LOG_LEVEL, service=settings.APP_NAME)
    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(HelpdeskError, helpdesk_exception_handler)
    app.add_exception_handler(SQLAlchemyError, storage_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(api_auth.router)
    app.include_router(api_tickets.router)
    app.include_router(api_tickets.assignments_router)
    app.include_router(api_comments.router)
    app.include_router(api_labels.router)
    app.include_router(api_users.router)

    @app.get("/health")
    async def health() -> dict[str, bool]:
        return {"ok": True}

    if settings.METRICS_ENABLED:
        Instrumentator().instrument(app).expose(app, include_in_schema=False)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("helpdesk.main:app", host=settings.HOST, port=settings.PORT)
