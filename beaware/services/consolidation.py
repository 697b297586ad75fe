import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from beaware.models.consolidated_scam import ConsolidatedScam, ScamReportConsolidation
from beaware.models.scam_report import ScamReport

logger = logging.getLogger(__name__)

IDENTIFIER_FIELDS = {
    "phone": "scam_phone_number",
    "email": "scam_email",
    "business": "scam_business_name",
}

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def normalize_identifier(identifier: str) -> str:
    return identifier.strip().lower()


def identifier_for(report: ScamReport) -> str | None:
    """Type-specific identifying value of a report, or None when absent."""
    field = IDENTIFIER_FIELDS.get(report.scam_type)
    if field is None:
        return None

    value = getattr(report, field, None)
    if value is None:
        return None

    value = value.strip()
    return value or None


def _upsert_consolidated_scam(
    db: Session,
    scam_type: str,
    identifier: str,
    reported_at: datetime,
) -> int:
    dialect = db.get_bind().dialect.name
    insert = _UPSERT_INSERTS.get(dialect)

    if insert is None:
        return _select_then_insert(db, scam_type, identifier, reported_at)

    stmt = insert(ConsolidatedScam).values(
        scam_type=scam_type,
        identifier=identifier,
        identifier_key=normalize_identifier(identifier),
        report_count=1,
        first_reported_at=reported_at,
        last_reported_at=reported_at,
        is_verified=False,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[ConsolidatedScam.scam_type, ConsolidatedScam.identifier_key],
        set_={
            "report_count": ConsolidatedScam.report_count + 1,
            "last_reported_at": stmt.excluded.last_reported_at,
        },
    ).returning(ConsolidatedScam.id)

    return db.execute(stmt).scalar_one()


def _select_then_insert(
    db: Session,
    scam_type: str,
    identifier: str,
    reported_at: datetime,
) -> int:
    # Dialects without ON CONFLICT. The unique constraint still rejects a racing duplicate.
    existing = db.execute(
        select(ConsolidatedScam)
        .where(
            ConsolidatedScam.scam_type == scam_type,
            ConsolidatedScam.identifier_key == normalize_identifier(identifier),
        )
        .with_for_update()
    ).scalar_one_or_none()

    if existing is not None:
        existing.report_count = ConsolidatedScam.report_count + 1
        existing.last_reported_at = reported_at
        db.flush()
        return existing.id

    scam = ConsolidatedScam(
        scam_type=scam_type,
        identifier=identifier,
        identifier_key=normalize_identifier(identifier),
        report_count=1,
        first_reported_at=reported_at,
        last_reported_at=reported_at,
        is_verified=False,
    )
    db.add(scam)
    db.flush()
    return scam.id


def consolidate_report(db: Session, report: ScamReport) -> ConsolidatedScam | None:
    """
    Fold a freshly flushed report into its consolidated scam.

    Runs inside the caller's transaction; the caller commits or rolls
    back report and consolidation together. Reports without an
    identifying value for their type are skipped.
    """
    identifier = identifier_for(report)
    if identifier is None:
        logger.info(
            "consolidation_skipped report_id=%s scam_type=%s reason=no_identifier",
            report.id,
            report.scam_type,
        )
        return None

    reported_at = report.reported_at or datetime.now(timezone.utc)

    scam_id = _upsert_consolidated_scam(
        db=db,
        scam_type=report.scam_type,
        identifier=identifier,
        reported_at=reported_at,
    )

    db.add(
        ScamReportConsolidation(
            scam_report_id=report.id,
            consolidated_scam_id=scam_id,
        )
    )
    db.flush()

    scam = db.get(ConsolidatedScam, scam_id)
    # the upsert bypasses the identity map
    db.refresh(scam)

    logger.info(
        "report_consolidated report_id=%s consolidated_scam_id=%s report_count=%s",
        report.id,
        scam_id,
        scam.report_count,
    )
    return scam


def linked_consolidated_scam_ids(db: Session, report_id: int) -> list[int]:
    return list(
        db.execute(
            select(ScamReportConsolidation.consolidated_scam_id).where(
                ScamReportConsolidation.scam_report_id == report_id
            )
        ).scalars()
    )


def mark_linked_scams_verified(db: Session, report_id: int, verified_by: int | None) -> int:
    """
    Verify every consolidated scam linked to the report.
    One-way: nothing here ever clears is_verified.
    """
    scam_ids = linked_consolidated_scam_ids(db, report_id)
    if not scam_ids:
        return 0

    pending = db.execute(
        select(ConsolidatedScam).where(
            ConsolidatedScam.id.in_(scam_ids),
            ConsolidatedScam.is_verified.is_(False),
        )
    ).scalars().all()

    for scam in pending:
        verify_consolidated_scam(db, scam, verified_by)

    return len(pending)


def verify_consolidated_scam(db: Session, scam: ConsolidatedScam, verified_by: int | None) -> ConsolidatedScam:
    scam.is_verified = True
    scam.verified_at = datetime.now(timezone.utc)
    scam.verified_by = verified_by
    db.flush()
    return scam


def escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _has_published_report():
    return (
        select(ScamReportConsolidation.id)
        .join(ScamReport, ScamReport.id == ScamReportConsolidation.scam_report_id)
        .where(
            ScamReportConsolidation.consolidated_scam_id == ConsolidatedScam.id,
            ScamReport.is_published.is_(True),
        )
        .exists()
    )


def has_published_report(db: Session, scam_id: int) -> bool:
    return db.execute(
        select(ConsolidatedScam.id).where(ConsolidatedScam.id == scam_id, _has_published_report())
    ).first() is not None


def search_consolidated_scams(
    db: Session,
    query: str | None = None,
    scam_type: str | None = None,
    published_only: bool = False,
):
    """
    Aggregates ordered by report count, optionally filtered by type and
    identifier substring. published_only drops aggregates whose linked
    reports are all unpublished.
    """
    stmt = select(ConsolidatedScam)

    if scam_type:
        stmt = stmt.where(ConsolidatedScam.scam_type == scam_type)

    if query:
        pattern = f"%{escape_like(normalize_identifier(query))}%"
        stmt = stmt.where(func.lower(ConsolidatedScam.identifier).like(pattern, escape="\\"))

    if published_only:
        stmt = stmt.where(_has_published_report())

    stmt = stmt.order_by(
        ConsolidatedScam.report_count.desc(),
        ConsolidatedScam.last_reported_at.desc(),
    )
    return list(db.execute(stmt).scalars())


def reports_for_consolidated_scam(db: Session, scam_id: int) -> list[ScamReport]:
    return list(
        db.execute(
            select(ScamReport)
            .join(
                ScamReportConsolidation,
                ScamReportConsolidation.scam_report_id == ScamReport.id,
            )
            .where(ScamReportConsolidation.consolidated_scam_id == scam_id)
            .order_by(ScamReport.reported_at.desc())
        ).scalars()
    )
