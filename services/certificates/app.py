# services/certificates/app.py
"""FastAPI app for the SoftAI Certificates Service:
- POST /generate-certificate: issue a course certificate once per (user, course)
- GET  /course-progress/{course_id}: caller's progress percentage in a course
- GET  /healthz: liveness probe
"""

from fastapi import Depends, FastAPI, Request

from packages.common.auth import Identity, get_current_identity
from packages.common.body import read_model
from packages.common.config import get_settings
from packages.common.cors import cors_middleware
from packages.common.errors import InternalError, register_error_handlers
from packages.common.logging import configure_logging
from packages.common.tracing import trace_middleware
from packages.schemas.certificate import (
    EXISTING_MESSAGE, ISSUED_MESSAGE, CertificateResponse, CourseProgress, GenerateCertificateRequest,
)
from packages.store.repo import DataStoreGateway, StoreError, get_gateway, init_db
from .issuer import issue_certificate

app = FastAPI(title="SoftAI Certificates Service", version="1.0.0")
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
    return {"status": "ok", "service": "certificates", "env": s.ENV}


@app.post("/generate-certificate", response_model=CertificateResponse,
          response_model_exclude_unset=True, tags=["certificates"])
async def generate_certificate(
    request: Request,
    identity: Identity = Depends(get_current_identity),
    gateway: DataStoreGateway = Depends(get_gateway),
) -> CertificateResponse:
    """Issue the caller's certificate for `course_id`, or return the existing one.

    Raises:
        InputError: 400 if `user_id` or `course_id` is missing.
        Forbidden: 403 if `user_id` is not the caller.
        CourseNotComplete: 400 if the course is not completed yet.
    """
    body = await read_model(request, GenerateCertificateRequest, "user_id and course_id are required")
    result = await issue_certificate(
        gateway, body.user_id, body.course_id, identity, prefix=get_settings().CERTIFICATE_PREFIX,
    )
    if not result.created:
        return CertificateResponse(message=EXISTING_MESSAGE, certificate_id=result.certificate_id)
    return CertificateResponse(
        message=ISSUED_MESSAGE,
        certificate_id=result.certificate_id,
        certificate=result.certificate,
    )


@app.get("/course-progress/{course_id}", response_model=CourseProgress, tags=["certificates"])
async def course_progress(
    course_id: str,
    identity: Identity = Depends(get_current_identity),
    gateway: DataStoreGateway = Depends(get_gateway),
) -> CourseProgress:
    """Return the caller's progress percentage in `course_id` as computed by the store."""
    try:
        percent = await gateway.calculate_course_progress(identity.user_id, course_id)
    except StoreError as exc:
        raise InternalError("Failed to calculate course progress") from exc
    return CourseProgress(course_id=course_id, progress_percent=percent)
