"""Interview session service — FastAPI application entry point."""

import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from interview_api import models  # noqa: F401  (registers tables on Base)
from interview_api.config import settings
from interview_api.database import engine, Base
from interview_api.errors import (
    InterviewServiceError,
    service_error_handler,
    store_error_handler,
    validation_error_handler,
)
from interview_api.middleware.rate_limit import limiter
from interview_api.routers import internal, interviews, public_sessions

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create all tables on startup
Base.metadata.create_all(bind=engine)

# ── CORS origins from env (supports dev localhost + production domain) ──────
_cors_origins = [o.strip() for o in settings.ALLOWED_ORIGINS.split(",") if o.strip()]

app = FastAPI(
    title="interview-sessions",
    description="Participant interview sessions, transcripts and reports.",
    version="1.0.0",
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Error taxonomy
app.add_exception_handler(InterviewServiceError, service_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)
app.add_exception_handler(SQLAlchemyError, store_error_handler)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Session-Token"],
)

# Routers
app.include_router(public_sessions.router)
app.include_router(interviews.router)
app.include_router(internal.router)


@app.get("/health")
def health():
    return {"status": "ok"}
