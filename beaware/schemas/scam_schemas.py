from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field

ScamType = Literal["phone", "email", "business"]


class ScamReportRequest(BaseModel):
    scam_type: ScamType
    scam_phone_number: Optional[str] = Field(default=None, max_length=64)
    scam_email: Optional[str] = Field(default=None, max_length=255)
    scam_business_name: Optional[str] = Field(default=None, max_length=255)

    incident_date: date
    description: str = Field(..., min_length=1, max_length=10000)

    country: str = Field(default="USA", max_length=100)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    zip_code: Optional[str] = Field(default=None, max_length=20)

    # proof document already stored by the upload service
    proof_file_path: Optional[str] = Field(default=None, max_length=500)
    proof_file_name: Optional[str] = Field(default=None, max_length=255)
    proof_file_type: Optional[str] = Field(default=None, max_length=100)
    proof_file_size: Optional[int] = Field(default=None, ge=0)


class ScamCommentRequest(BaseModel):
    scam_report_id: int
    comment: str = Field(..., min_length=1, max_length=5000)
