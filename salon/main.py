# salon/main.py

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from .config import Settings
from .core.errors import BookingError, PersistenceError
from .db import create_tables, make_engine
from .routers import auth_routes, bookings_routes, reviews_routes, services_routes, staff_routes, users_routes

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    create_tables(app.state.engine)
    logger.info("Database tables created successfully")
    yield
    logger.info("Application shutting down...")
    app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None, engine: Optional[Engine] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    app = FastAPI(title="Salon Booking API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine or make_engine(settings.database_url, echo=settings.sql_echo)

    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError):
        logger.error(f"Persistence failure on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    app.include_router(auth_routes.router)
    app.include_router(users_routes.router)
    app.include_router(services_routes.router)
    app.include_router(staff_routes.router)
    app.include_router(bookings_routes.router)
    app.include_router(reviews_routes.router)

    return app


app = create_app()
