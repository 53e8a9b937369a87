import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import logging

from leadflow.api.v1.router import router as api_v1_router
from leadflow.core.exceptions import (
    AppointmentNotFoundError,
    InvalidTemperatureStateError,
    InvalidTransitionRuleError,
    LeadNotFoundError,
    TransitionRuleNotFoundError,
)
from leadflow.core.config import settings as app_settings
from leadflow.core.rate_limit import limiter
from leadflow.schemas.transitions import TransitionRunResponse
from leadflow.services.transition_engine import start_transition_loop
from leadflow.core.database import AsyncSessionLocal

# Configure logging
logging.basicConfig(level=app_settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

TRANSITION_TRIGGER_PATH = "/api/v1/transitions/run"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage the optional in-process transition loop."""
    if not app_settings.TRANSITION_LOOP_ENABLED:
        logger.info("In-process transition loop disabled; waiting for external trigger")
        yield
        return

    transition_task = asyncio.create_task(start_transition_loop(AsyncSessionLocal))
    logger.info("Background transition task scheduled")
    yield
    # Shutdown: cancel the background task
    transition_task.cancel()
    try:
        await transition_task
    except asyncio.CancelledError:
        logger.info("Background transition task stopped")


app = FastAPI(
    title="Leadflow",
    description="Lead temperature transitions and appointment-driven scheduling state",
    version="0.1.0",
    lifespan=lifespan,
)

# Attach rate limiter state so slowapi middleware can find it
app.state.limiter = limiter


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """The engine trigger answers 200 with ``success: false`` instead of 429.

    Its caller is an unattended scheduler that must never see a
    transport failure; other routes keep slowapi's 429.
    """
    if request.url.path != TRANSITION_TRIGGER_PATH:
        return _rate_limit_exceeded_handler(request, exc)
    logger.warning("Transition trigger rate limited: %s", exc.detail)
    response = TransitionRunResponse(
        success=False,
        timestamp=datetime.now(timezone.utc),
        errors=[f"Rate limit exceeded: {exc.detail}"],
    )
    return JSONResponse(
        status_code=200,
        content=jsonable_encoder(response, exclude_none=True),
    )


app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

# CORS middleware, restricted to configured origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in app_settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_v1_router)


@app.exception_handler(LeadNotFoundError)
async def lead_not_found_handler(request: Request, exc: LeadNotFoundError):
    logger.warning("Lead not found: %s", exc.detail)
    return JSONResponse(
        status_code=404,
        content={"detail": exc.detail, "type": "lead_not_found"},
    )


@app.exception_handler(AppointmentNotFoundError)
async def appointment_not_found_handler(
    request: Request, exc: AppointmentNotFoundError
):
    logger.warning("Appointment not found: %s", exc.detail)
    return JSONResponse(
        status_code=404,
        content={"detail": exc.detail, "type": "appointment_not_found"},
    )


@app.exception_handler(TransitionRuleNotFoundError)
async def rule_not_found_handler(request: Request, exc: TransitionRuleNotFoundError):
    logger.warning("Transition rule not found: %s", exc.detail)
    return JSONResponse(
        status_code=404,
        content={"detail": exc.detail, "type": "transition_rule_not_found"},
    )


@app.exception_handler(InvalidTemperatureStateError)
async def invalid_temperature_state_handler(
    request: Request, exc: InvalidTemperatureStateError
):
    logger.warning("Invalid temperature state: %s", exc.detail)
    return JSONResponse(
        status_code=409,
        content={"detail": exc.detail, "type": "invalid_temperature_state"},
    )


@app.exception_handler(InvalidTransitionRuleError)
async def invalid_transition_rule_handler(
    request: Request, exc: InvalidTransitionRuleError
):
    logger.warning("Invalid transition rule: %s", exc.detail)
    return JSONResponse(
        status_code=422,
        content={"detail": exc.detail, "type": "invalid_transition_rule"},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("Request validation error: %s", exc.errors())
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Request validation failed",
            "errors": jsonable_encoder(exc.errors(), custom_encoder={Exception: str}),
            "type": "validation_error",
        },
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Catch-all handler for unexpected/unhandled exceptions.

    Returns a generic 500 response so that raw stack traces are never
    leaked to the client.
    """
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected internal error occurred. Please try again later.",
            "type": "internal_server_error",
        },
    )
