"""
FastAPI application entrypoint.
APIs: quizzes, questions. Run with: uvicorn quizbank.main:app --reload --port 8000 (from backend/)

API base path: routes are mounted at root (no /api/v1 prefix).
  - Quizzes: POST /quizzes/secure, GET /quizzes/history, GET|PATCH|DELETE /quizzes/{id},
             POST /quizzes/{id}/retry, POST /quizzes/{id}/submit
  - Questions: POST /questions/check-duplicates

Authentication: Bearer token from the identity provider; "sub" must match users.external_id.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from quizbank.config import settings, DEFAULT_SECRET_KEY
from quizbank.api.quizzes import router as quizzes_router
from quizbank.api.questions import router as questions_router

app = FastAPI(
    title="Quiz Bank API",
    description="Interview-prep quizzes: shuffled presentation without answer-key leakage, server-side grading, duplicate question checks.",
    version="0.1.0",
)

_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins if _origins else ["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(quizzes_router)
app.include_router(questions_router)


@app.on_event("startup")
def startup():
    """Init SQLite DB. Fail fast if production uses default SECRET_KEY."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    _log = logging.getLogger("quizbank.main")
    if settings.is_production and (settings.secret_key or "").strip() == DEFAULT_SECRET_KEY:
        _log.critical("SECRET_KEY must be set in production. Set SECRET_KEY in env or .env.")
        raise RuntimeError("SECRET_KEY must be set in production. Set SECRET_KEY in env or .env.")
    _log.info(
        "Duplicate check: threshold=%s max_matches=%s",
        settings.duplicate_threshold, settings.duplicate_max_matches,
    )
    from quizbank.database import init_sqlite_db
    init_sqlite_db()


@app.get("/health")
def health():
    """Health check (JSON)."""
    return {"status": "ok", "message": "Quiz Bank API"}
