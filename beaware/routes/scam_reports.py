import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from beaware.db import get_db
from beaware.dependencies.access import require_admin
from beaware.models.scam_report import ScamComment, ScamReport
from beaware.models.user import User
from beaware.routes.auth import get_current_user
from beaware.schemas.scam_schemas import ScamCommentRequest, ScamReportRequest, ScamType
from beaware.services import audit_logger
from beaware.services.audit_logger import create_audit_log
from beaware.services.consolidation import (
    consolidate_report,
    linked_consolidated_scam_ids,
    mark_linked_scams_verified,
)

router = APIRouter(tags=["Scam Reports"])
logger = logging.getLogger(__name__)


def serialize_report(report: ScamReport) -> dict:
    return {
        "id": report.id,
        "user_id": report.user_id,
        "scam_type": report.scam_type,
        "scam_phone_number": report.scam_phone_number,
        "scam_email": report.scam_email,
        "scam_business_name": report.scam_business_name,
        "incident_date": report.incident_date,
        "description": report.description,
        "country": report.country,
        "city": report.city,
        "state": report.state,
        "zip_code": report.zip_code,
        "has_proof_document": report.has_proof_document,
        "proof_file_name": report.proof_file_name,
        "proof_file_type": report.proof_file_type,
        "proof_file_size": report.proof_file_size,
        "is_verified": report.is_verified,
        "verified_by": report.verified_by,
        "verified_at": report.verified_at,
        "is_published": report.is_published,
        "published_by": report.published_by,
        "published_at": report.published_at,
        "reported_at": report.reported_at,
    }


def _get_report_or_404(db: Session, report_id: int) -> ScamReport:
    report = db.get(ScamReport, report_id)
    if not report:
        raise HTTPException(status_code=404, detail="Scam report not found")
    return report


def _list_reports(db: Session, *conditions, limit: int, offset: int) -> list[ScamReport]:
    return list(
        db.execute(
            select(ScamReport)
            .where(*conditions)
            .order_by(ScamReport.reported_at.desc(), ScamReport.id.desc())
            .offset(offset)
            .limit(limit)
        ).scalars()
    )


# =========================================================
# SUBMISSION
# =========================================================

@router.post("/scam-reports", status_code=201)
def submit_scam_report(
    payload: ScamReportRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    report = ScamReport(
        user_id=current_user.id,
        scam_type=payload.scam_type,
        scam_phone_number=payload.scam_phone_number,
        scam_email=payload.scam_email,
        scam_business_name=payload.scam_business_name,
        incident_date=payload.incident_date,
        description=payload.description,
        country=payload.country or "USA",
        city=payload.city,
        state=payload.state,
        zip_code=payload.zip_code,
        has_proof_document=bool(payload.proof_file_path),
        proof_file_path=payload.proof_file_path,
        proof_file_name=payload.proof_file_name,
        proof_file_type=payload.proof_file_type,
        proof_file_size=payload.proof_file_size,
    )

    # report and consolidation commit together or not at all
    try:
        db.add(report)
        db.flush()

        consolidated = consolidate_report(db, report)

        create_audit_log(
            db=db,
            user_id=current_user.id,
            event_type=audit_logger.SCAM_REPORTED,
            event_description=f"Scam reported: {report.scam_type} #{report.id}",
            request=request,
            auto_commit=False,
        )
        db.commit()
    except Exception:
        db.rollback()
        logger.exception(
            "scam_report_submit_failed user_id=%s scam_type=%s",
            current_user.id,
            payload.scam_type,
        )
        raise HTTPException(status_code=500, detail="Failed to save scam report")

    db.refresh(report)

    logger.info(
        "scam_report_created report_id=%s user_id=%s consolidated_scam_id=%s",
        report.id,
        current_user.id,
        consolidated.id if consolidated else None,
    )

    return {
        "status": "reported",
        "report": serialize_report(report),
        "consolidated_scam_id": consolidated.id if consolidated else None,
        "report_count": consolidated.report_count if consolidated else None,
    }


# =========================================================
# LISTINGS
# =========================================================

@router.get("/scam-reports/mine")
def get_my_scam_reports(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    reports = _list_reports(db, ScamReport.user_id == current_user.id, limit=limit, offset=offset)
    return {"count": len(reports), "data": [serialize_report(r) for r in reports]}


@router.get("/scam-reports/published")
def get_published_reports(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    reports = _list_reports(db, ScamReport.is_published.is_(True), limit=limit, offset=offset)
    return {"count": len(reports), "data": [serialize_report(r) for r in reports]}


@router.get("/scam-reports/recent")
def get_recent_reports(
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
):
    reports = _list_reports(db, ScamReport.is_published.is_(True), limit=limit, offset=0)
    return {"count": len(reports), "data": [serialize_report(r) for r in reports]}


@router.get("/scam-reports/unpublished")
def get_unpublished_reports(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    reports = _list_reports(db, ScamReport.is_published.is_(False), limit=limit, offset=offset)
    return {"count": len(reports), "data": [serialize_report(r) for r in reports]}


@router.get("/scam-reports/by-type/{scam_type}")
def get_reports_by_type(
    scam_type: ScamType,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    reports = _list_reports(
        db,
        ScamReport.scam_type == scam_type,
        ScamReport.is_published.is_(True),
        limit=limit,
        offset=offset,
    )
    return {"count": len(reports), "data": [serialize_report(r) for r in reports]}


@router.get("/scam-reports/{report_id}")
def get_scam_report(report_id: int, db: Session = Depends(get_db)):
    report = _get_report_or_404(db, report_id)
    if not report.is_published:
        raise HTTPException(status_code=404, detail="Scam report not found")

    comments = (
        db.query(ScamComment)
        .filter(ScamComment.scam_report_id == report_id)
        .order_by(ScamComment.created_at.asc(), ScamComment.id.asc())
        .all()
    )

    return {
        **serialize_report(report),
        "consolidated_scam_ids": linked_consolidated_scam_ids(db, report_id),
        "comments": [
            {
                "id": c.id,
                "user_id": c.user_id,
                "comment": c.comment,
                "created_at": c.created_at,
            }
            for c in comments
        ],
    }


# =========================================================
# MODERATION (ADMIN)
# =========================================================

@router.post("/scam-reports/{report_id}/verify")
def verify_scam_report(
    report_id: int,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    report = _get_report_or_404(db, report_id)

    if report.is_verified:
        logger.info("scam_report_already_verified report_id=%s", report_id)
        return {
            "success": True,
            "message": "Scam report was already verified",
            "report": serialize_report(report),
        }

    try:
        report.is_verified = True
        report.verified_by = admin.id
        report.verified_at = datetime.now(timezone.utc)

        verified_scams = mark_linked_scams_verified(db, report_id, admin.id)

        create_audit_log(
            db=db,
            user_id=admin.id,
            event_type=audit_logger.SCAM_REPORT_VERIFIED,
            event_description=f"Scam report #{report_id} verified",
            request=request,
            auto_commit=False,
        )
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("scam_report_verify_failed report_id=%s", report_id)
        raise HTTPException(status_code=500, detail="Failed to verify scam report")

    db.refresh(report)
    logger.info(
        "scam_report_verified report_id=%s admin_id=%s consolidated_scams_verified=%s",
        report_id,
        admin.id,
        verified_scams,
    )

    return {
        "success": True,
        "message": "Scam report verified successfully",
        "report": serialize_report(report),
        "consolidated_scams_verified": verified_scams,
    }


@router.post("/scam-reports/{report_id}/unverify")
def unverify_scam_report(
    report_id: int,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    report = _get_report_or_404(db, report_id)

    # consolidated scams stay verified
    report.is_verified = False
    report.verified_by = None
    report.verified_at = None

    create_audit_log(
        db=db,
        user_id=admin.id,
        event_type=audit_logger.SCAM_REPORT_UNVERIFIED,
        event_description=f"Scam report #{report_id} unverified",
        request=request,
        auto_commit=False,
    )
    db.commit()
    db.refresh(report)

    return {"success": True, "report": serialize_report(report)}


def _set_published(
    db: Session,
    report_id: int,
    is_published: bool,
    admin: User,
    request: Request,
) -> dict:
    report = _get_report_or_404(db, report_id)

    report.is_published = is_published
    report.published_by = admin.id
    report.published_at = datetime.now(timezone.utc) if is_published else None

    create_audit_log(
        db=db,
        user_id=admin.id,
        event_type=(
            audit_logger.SCAM_REPORT_PUBLISHED
            if is_published
            else audit_logger.SCAM_REPORT_UNPUBLISHED
        ),
        event_description=f"Scam report #{report_id} {'published' if is_published else 'unpublished'}",
        request=request,
        auto_commit=False,
    )
    db.commit()
    db.refresh(report)

    return {"success": True, "report": serialize_report(report)}


@router.post("/scam-reports/{report_id}/publish")
def publish_scam_report(
    report_id: int,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return _set_published(db, report_id, True, admin, request)


@router.post("/scam-reports/{report_id}/unpublish")
def unpublish_scam_report(
    report_id: int,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return _set_published(db, report_id, False, admin, request)


# =========================================================
# COMMENTS / STATS
# =========================================================

@router.post("/scam-comments", status_code=201)
def add_scam_comment(
    payload: ScamCommentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    report = _get_report_or_404(db, payload.scam_report_id)
    if not report.is_published:
        raise HTTPException(status_code=404, detail="Scam report not found")

    comment = ScamComment(
        scam_report_id=report.id,
        user_id=current_user.id,
        comment=payload.comment,
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)

    return {
        "id": comment.id,
        "scam_report_id": comment.scam_report_id,
        "user_id": comment.user_id,
        "comment": comment.comment,
        "created_at": comment.created_at,
    }


@router.get("/scam-stats")
def get_scam_stats(db: Session = Depends(get_db)):
    by_type = dict(
        db.execute(
            select(ScamReport.scam_type, func.count(ScamReport.id)).group_by(ScamReport.scam_type)
        ).all()
    )

    verified = db.execute(
        select(func.count(ScamReport.id)).where(ScamReport.is_verified.is_(True))
    ).scalar_one()

    with_proof = db.execute(
        select(func.count(ScamReport.id)).where(ScamReport.has_proof_document.is_(True))
    ).scalar_one()

    return {
        "total_reports": sum(by_type.values()),
        "phone_scams": by_type.get("phone", 0),
        "email_scams": by_type.get("email", 0),
        "business_scams": by_type.get("business", 0),
        "verified_reports": verified,
        "reports_with_proof": with_proof,
        "generated_at": datetime.now(timezone.utc),
    }
