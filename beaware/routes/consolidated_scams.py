import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from beaware.db import get_db
from beaware.dependencies.access import require_admin
from beaware.models.consolidated_scam import ConsolidatedScam
from beaware.models.user import User
from beaware.routes.scam_reports import serialize_report
from beaware.schemas.scam_schemas import ScamType
from beaware.services import audit_logger
from beaware.services.audit_logger import create_audit_log
from beaware.services.consolidation import (
    has_published_report,
    reports_for_consolidated_scam,
    search_consolidated_scams,
    verify_consolidated_scam,
)

router = APIRouter(prefix="/consolidated-scams", tags=["Consolidated Scams"])
logger = logging.getLogger(__name__)


def serialize_consolidated_scam(scam: ConsolidatedScam) -> dict:
    return {
        "id": scam.id,
        "scam_type": scam.scam_type,
        "identifier": scam.identifier,
        "report_count": scam.report_count,
        "first_reported_at": scam.first_reported_at,
        "last_reported_at": scam.last_reported_at,
        "is_verified": scam.is_verified,
        "verified_at": scam.verified_at,
    }


@router.get("")
def list_consolidated_scams(
    q: Optional[str] = Query(None, max_length=255),
    db: Session = Depends(get_db),
):
    scams = search_consolidated_scams(db, query=q, published_only=True)
    return [serialize_consolidated_scam(s) for s in scams]


@router.get("/by-type/{scam_type}")
def list_consolidated_scams_by_type(
    scam_type: ScamType,
    q: Optional[str] = Query(None, max_length=255),
    db: Session = Depends(get_db),
):
    scams = search_consolidated_scams(db, query=q, scam_type=scam_type, published_only=True)
    return [serialize_consolidated_scam(s) for s in scams]


@router.get("/{scam_id}")
def get_consolidated_scam(scam_id: int, db: Session = Depends(get_db)):
    scam = db.get(ConsolidatedScam, scam_id)
    # aggregates backed only by unpublished reports stay private
    if not scam or not has_published_report(db, scam_id):
        raise HTTPException(status_code=404, detail="Consolidated scam not found")

    reports = [r for r in reports_for_consolidated_scam(db, scam_id) if r.is_published]

    return {
        **serialize_consolidated_scam(scam),
        "reports": [serialize_report(r) for r in reports],
    }


@router.post("/{scam_id}/verify")
def verify_consolidated(
    scam_id: int,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    scam = db.get(ConsolidatedScam, scam_id)
    if not scam:
        raise HTTPException(status_code=404, detail="Consolidated scam not found")

    if scam.is_verified:
        return {
            "success": True,
            "message": "Consolidated scam was already verified",
            "consolidated_scam": serialize_consolidated_scam(scam),
        }

    verify_consolidated_scam(db, scam, admin.id)
    create_audit_log(
        db=db,
        user_id=admin.id,
        event_type=audit_logger.CONSOLIDATED_SCAM_VERIFIED,
        event_description=f"Consolidated scam #{scam_id} verified",
        request=request,
        auto_commit=False,
    )
    db.commit()
    db.refresh(scam)

    logger.info("consolidated_scam_verified scam_id=%s admin_id=%s", scam_id, admin.id)

    return {
        "success": True,
        "message": "Consolidated scam verified successfully",
        "consolidated_scam": serialize_consolidated_scam(scam),
    }
