"""Certificate schemas: issuance requests, stored records, and responses."""

from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

ISSUED_MESSAGE = "Certificate generated successfully"
EXISTING_MESSAGE = "Certificate already exists"


class GenerateCertificateRequest(BaseModel):
    """Body of `POST /generate-certificate`."""
    user_id: str = Field(min_length=1)
    course_id: str = Field(min_length=1)


class CertificateRecord(BaseModel):
    """Stored certificate row as returned to clients."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    course_id: str
    certificate_id: str
    issue_date: datetime
    pdf_url: Optional[str] = None
    created_at: datetime


class CertificateResult(BaseModel):
    """Outcome of an issuance: the code, the record, and whether it was just created."""
    certificate_id: str
    certificate: CertificateRecord
    created: bool


class CertificateResponse(BaseModel):
    """Wire response; `certificate` is omitted when the certificate already existed."""
    message: str
    certificate_id: str
    certificate: Optional[CertificateRecord] = None


class CourseProgress(BaseModel):
    course_id: str
    progress_percent: int
