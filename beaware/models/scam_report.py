from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from beaware.db import Base

SCAM_TYPES = ("phone", "email", "business")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScamReport(Base):
    __tablename__ = "scam_reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    scam_type = Column(String(20), nullable=False, index=True)
    scam_phone_number = Column(String(64))
    scam_email = Column(String(255))
    scam_business_name = Column(String(255))

    incident_date = Column(Date, nullable=False)
    description = Column(Text, nullable=False)

    country = Column(String(100), nullable=False, default="USA")
    city = Column(String(100))
    state = Column(String(100))
    zip_code = Column(String(20))

    # Reference only. Upload storage lives outside this service.
    has_proof_document = Column(Boolean, nullable=False, default=False)
    proof_file_path = Column(String(500))
    proof_file_name = Column(String(255))
    proof_file_type = Column(String(100))
    proof_file_size = Column(Integer)

    is_verified = Column(Boolean, nullable=False, default=False)
    verified_by = Column(Integer, ForeignKey("users.id"))
    verified_at = Column(DateTime(timezone=True))

    is_published = Column(Boolean, nullable=False, default=True)
    published_by = Column(Integer, ForeignKey("users.id"))
    published_at = Column(DateTime(timezone=True))

    # Python-side default so the value is known right after flush.
    reported_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
    )


class ScamComment(Base):
    __tablename__ = "scam_comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    scam_report_id = Column(Integer, ForeignKey("scam_reports.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    comment = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
