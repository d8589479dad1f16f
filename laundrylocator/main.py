# laundrylocator/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .db import Base, engine
from . import models  # noqa: F401 ensure models are imported so tables are known
from .api import admin, business, locations, routes, seo, subscriptions
from .cache import TTLCache
from .constants import CACHE_TTL_SECONDS
from .utils import env_flag, logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Ensure database tables are created on startup
    Base.metadata.create_all(bind=engine)
    scheduler = None
    if env_flag("ENABLE_SCHEDULER"):
        from .scheduler import start_scheduler
        scheduler = start_scheduler()
    app.state.scheduler = scheduler
    yield
    if scheduler:
        scheduler.shutdown(wait=False)


def create_app() -> FastAPI:
    app = FastAPI(title="LaundryLocator", version="0.1.0", lifespan=lifespan)
    app.state.cache = TTLCache(ttl=CACHE_TTL_SECONDS)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"detail": "Invalid request", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error(request: Request, exc: SQLAlchemyError):
        logger.error("Database error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @app.get("/health")
    def health():
        return {"status": "ok"}

    for module in (routes, locations, business, subscriptions, admin, seo):
        app.include_router(module.router)
    return app


app = create_app()
