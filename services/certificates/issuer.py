# services/certificates/issuer.py
"""Certificate issuance for completed courses.

`issue_certificate` grants at most one certificate per (user, course):
- callers may only certify themselves;
- an existing certificate is returned unchanged instead of a new one;
- a new certificate needs the store's course-completion fact;
- a racing insert rejected by the store's (user_id, course_id) unique
  constraint resolves to the row that won.
"""

import logging
import uuid
from datetime import datetime, timezone

from packages.common.auth import Identity
from packages.common.errors import (
    CertificateInsertFailed, CompletionCheckFailed, CourseNotComplete, Forbidden, InternalError,
)
from packages.common.tracing import xapi_event
from packages.schemas.certificate import CertificateRecord, CertificateResult
from packages.store.models import Certificate
from packages.store.repo import DataStoreGateway, DuplicateCertificate, StoreError

log = logging.getLogger("softai.certificates")


def generate_certificate_code(prefix: str) -> str:
    """Return a short presentable code such as "SOFTAI-1A2B3C4D".

    The suffix is the first group of a random UUID4, upper-cased.
    """
    return f"{prefix}-{str(uuid.uuid4()).split('-')[0].upper()}"


def _existing(certificate: Certificate) -> CertificateResult:
    return CertificateResult(
        certificate_id=certificate.certificate_id,
        certificate=CertificateRecord.model_validate(certificate),
        created=False,
    )


async def _find(gateway: DataStoreGateway, user_id: str, course_id: str) -> Certificate | None:
    try:
        return await gateway.find_certificate(user_id, course_id)
    except StoreError as exc:
        raise InternalError("Failed to look up certificate") from exc


async def issue_certificate(
    gateway: DataStoreGateway,
    user_id: str,
    course_id: str,
    identity: Identity,
    prefix: str = "SOFTAI",
) -> CertificateResult:
    """Issue (or return the already issued) certificate for `user_id` on `course_id`.

    Args:
        gateway: Store access.
        user_id: User the certificate is for.
        course_id: Completed course.
        identity: Authenticated caller; must be `user_id`.
        prefix: Product prefix of the certificate code.

    Returns:
        CertificateResult with `created=False` when one already existed.

    Raises:
        Forbidden: the caller is not `user_id`.
        CompletionCheckFailed: the completion fact could not be computed.
        CourseNotComplete: the course is not complete yet.
        CertificateInsertFailed: the row could not be stored.
    """
    if identity.user_id != user_id:
        log.warning("certificate requested for another user",
                    extra={"ctx": {"caller": identity.user_id, "user_id": user_id, "course_id": course_id}})
        raise Forbidden()

    existing = await _find(gateway, user_id, course_id)
    if existing is not None:
        return _existing(existing)

    try:
        complete = await gateway.check_course_completion(user_id, course_id)
    except StoreError as exc:
        raise CompletionCheckFailed() from exc
    if not complete:
        raise CourseNotComplete()

    certificate = Certificate(
        id=str(uuid.uuid4()),
        user_id=user_id,
        course_id=course_id,
        certificate_id=generate_certificate_code(prefix),
        issue_date=datetime.now(timezone.utc),
        created_at=datetime.now(timezone.utc),
    )
    try:
        stored = await gateway.insert_certificate(certificate)
    except DuplicateCertificate as exc:
        winner = await _find(gateway, user_id, course_id)
        if winner is None:
            raise CertificateInsertFailed() from exc
        log.info("concurrent issuance resolved to existing certificate",
                 extra={"ctx": {"user_id": user_id, "course_id": course_id,
                                "certificate_id": winner.certificate_id}})
        return _existing(winner)
    except StoreError as exc:
        raise CertificateInsertFailed() from exc

    xapi_event(user_id, "earned", course_id, certificate_id=stored.certificate_id)
    return CertificateResult(
        certificate_id=stored.certificate_id,
        certificate=CertificateRecord.model_validate(stored),
        created=True,
    )
