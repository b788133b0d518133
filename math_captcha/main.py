from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from math_captcha.config import Settings, settings as default_settings
from math_captcha.logging_config import get_logger, setup_logging
from math_captcha.middleware.logging import LoggingMiddleware
from math_captcha.middleware.rate_limit import build_limiter
from math_captcha.models.captcha_config import CaptchaConfig
from math_captcha.routers.captcha import build_router
from math_captcha.scheduler import shutdown_scheduler, start_scheduler
from math_captcha.services.answer_store import (
    AnswerStoreUnavailableError,
    MemoryAnswerStore,
    build_answer_store,
)
from math_captcha.services.captcha_service import MathCaptcha

logger = get_logger("math_captcha")


async def answer_store_unavailable_handler(
    request: Request, exc: AnswerStoreUnavailableError
) -> JSONResponse:
    logger.error("answer_store_unavailable", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=503, content={"detail": "CAPTCHA service unavailable"})


def create_app(settings: Settings = default_settings) -> FastAPI:
    setup_logging(settings)

    # Fails here, at startup, on a bad operator or range
    config = CaptchaConfig.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Build the answer store and CAPTCHA service, and run the store reaper."""
        store = build_answer_store(settings)
        app.state.captcha = MathCaptcha(config, store)

        scheduler = None
        if isinstance(store, MemoryAnswerStore):
            scheduler = start_scheduler(store, settings.store_reap_interval_seconds)
        yield
        if scheduler is not None:
            shutdown_scheduler(scheduler)

    app = FastAPI(
        title="MathCaptcha",
        description="Arithmetic image CAPTCHAs with one-time server-side verification",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Rate limiting
    limiter = build_limiter(settings)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(AnswerStoreUnavailableError, answer_store_unavailable_handler)

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.route_enabled:
        app.include_router(
            build_router(settings, limiter), prefix=settings.route_path, tags=["captcha"]
        )

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app


app = create_app()
