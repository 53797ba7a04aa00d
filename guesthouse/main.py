import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine

from guesthouse.api.admin import router as admin_router
from guesthouse.api.booking import router as booking_router
from guesthouse.api.health import router as health_router
from guesthouse.core.config import Settings, settings as default_settings
from guesthouse.core.errors import BookingError
from guesthouse.core.logging import setup_logging
from guesthouse.core.rate_limiter import RateLimiter, build_rate_limiter
from guesthouse.database import engine as default_engine, init_db, make_session_factory
from guesthouse.middleware.request_logger import RequestLoggerMiddleware
from guesthouse.services.booking_service import BookingAdmissionService

logger = logging.getLogger(__name__)

CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


# -------------------------------------------------
# Error rendering
# -------------------------------------------------


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True
    )
    return JSONResponse(
        status_code=500, content={"error": "Internal server error", "kind": "internal"}
    )


# -------------------------------------------------
# FastAPI
# -------------------------------------------------


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[AsyncEngine] = None,
    rate_limiter: Optional[RateLimiter] = None,
) -> FastAPI:
    """
    Build and wire the application.
    Tests pass their own engine/limiter; production uses the module defaults.
    """
    settings = settings or default_settings
    engine = engine or default_engine
    session_factory = make_session_factory(engine)
    admission_service = BookingAdmissionService(
        session_factory=session_factory,
        settings=settings,
        rate_limiter=rate_limiter or build_rate_limiter(settings),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("FastAPI startup")
        await init_db(engine)
        yield
        logger.info("FastAPI shutdown")

    app = FastAPI(
        title=settings.app_name,
        description="Guest booking admission + back-office API",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.admission_service = admission_service

    app.add_exception_handler(BookingError, booking_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.add_middleware(
        RequestLoggerMiddleware,
        slow_threshold_ms=settings.log_slow_request_threshold_ms,
    )
    # Outermost, so preflight requests never reach the routers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=CORS_ALLOW_HEADERS,
    )

    app.include_router(health_router)
    app.include_router(booking_router)
    app.include_router(admin_router)

    return app


setup_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("guesthouse.main:app", host="0.0.0.0", port=8000)
