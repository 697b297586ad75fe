from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.sql import func

from beaware.db import Base


class ConsolidatedScam(Base):
    __tablename__ = "consolidated_scams"
    __table_args__ = (
        UniqueConstraint(
            "scam_type",
            "identifier_key",
            name="uq_consolidated_scams_type_identifier_key",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    scam_type = Column(String(20), nullable=False, index=True)

    # identifier keeps the casing of the first report; identifier_key is lower-cased
    identifier = Column(String(255), nullable=False)
    identifier_key = Column(String(255), nullable=False)

    report_count = Column(Integer, nullable=False, default=1, server_default=text("1"))
    first_reported_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    last_reported_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    is_verified = Column(Boolean, nullable=False, default=False, server_default=text("false"))
    verified_at = Column(DateTime(timezone=True))
    verified_by = Column(Integer, ForeignKey("users.id"))


class ScamReportConsolidation(Base):
    __tablename__ = "scam_report_consolidations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    scam_report_id = Column(
        Integer,
        ForeignKey("scam_reports.id"),
        nullable=False,
        unique=True,
    )
    consolidated_scam_id = Column(
        Integer,
        ForeignKey("consolidated_scams.id"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
