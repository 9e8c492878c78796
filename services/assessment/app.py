# services/assessment/app.py
"""FastAPI app for the SoftAI Assessment Service:
- POST /score-quiz: score a quiz attempt against the stored answer key
- GET  /healthz: liveness probe
"""

from fastapi import Depends, FastAPI, Request

from packages.common.auth import Identity, get_current_identity
from packages.common.body import read_model
from packages.common.config import get_settings
from packages.common.cors import cors_middleware
from packages.common.errors import register_error_handlers
from packages.common.logging import configure_logging
from packages.common.tracing import trace_middleware, xapi_event
from packages.schemas.assessment import ScoreQuizRequest, ScoreResult
from packages.store.repo import DataStoreGateway, get_gateway, init_db
from .scorer import score_quiz

app = FastAPI(title="SoftAI Assessment Service", version="1.0.0")
app.middleware("http")(cors_middleware)
app.middleware("http")(trace_middleware)
register_error_handlers(app)


@app.on_event("startup")
async def _init() -> None:
    """Apply the configured log level and create the store schema on a fresh database."""
    configure_logging(get_settings().LOG_LEVEL)
    await init_db()


@app.get("/healthz", tags=["infra"])
def healthz() -> dict[str, str]:
    s = get_settings()
    return {"status": "ok", "service": "assessment", "env": s.ENV}


@app.post("/score-quiz", response_model=ScoreResult, tags=["assessment"])
async def score(
    request: Request,
    identity: Identity = Depends(get_current_identity),
    gateway: DataStoreGateway = Depends(get_gateway),
) -> ScoreResult:
    """Compute the score of the caller's answers for `quiz_id`.

    Raises:
        InputError: 400 if `quiz_id` or `user_answers` is missing or malformed.
        QuizNotFound: 404 if the quiz does not exist.
    """
    body = await read_model(request, ScoreQuizRequest, "quiz_id and user_answers are required")
    result = await score_quiz(gateway, body.quiz_id, body.user_answers)
    xapi_event(identity.user_id, "answered", body.quiz_id,
               score_percent=result.score_percent, passed=result.passed)
    return result
