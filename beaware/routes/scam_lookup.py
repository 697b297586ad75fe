import logging
import time

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from beaware.config import Settings, get_settings
from beaware.db import get_db
from beaware.models.api_config import ApiConfig
from beaware.models.user import User
from beaware.routes.auth import get_current_user
from beaware.schemas.lookup_schemas import (
    ScamCheckBatchRequest,
    ScamCheckRequest,
    ScamLookupRequest,
    ScamLookupResult,
)
from beaware.services.lookup.base import utc_timestamp
from beaware.services.lookup.manager import lookup_all, lookup_scam_data

router = APIRouter(tags=["Scam Lookup"])
logger = logging.getLogger(__name__)

MAX_BATCH_CHECKS = 10


def enabled_configs_for(db: Session, lookup_type: str) -> list[ApiConfig]:
    return list(
        db.execute(
            select(ApiConfig)
            .where(ApiConfig.type == lookup_type, ApiConfig.enabled.is_(True))
            .order_by(ApiConfig.id.asc())
        ).scalars()
    )


@router.post("/scam-lookup")
def scam_lookup(
    payload: ScamLookupRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: User = Depends(get_current_user),
):
    """
    Query every enabled provider for the type.
    A failing provider yields an 'unknown' entry; it never hides the others.
    """
    configs = enabled_configs_for(db, payload.type)
    if not configs:
        raise HTTPException(
            status_code=404,
            detail=f"No enabled API configurations found for type: {payload.type}",
        )

    logger.info(
        "scam_lookup user_id=%s type=%s providers=%s",
        current_user.id,
        payload.type,
        len(configs),
    )

    started = time.monotonic()
    results = lookup_all(
        payload.type,
        payload.value,
        configs,
        max_workers=settings.lookup_max_workers,
    )
    elapsed_ms = int((time.monotonic() - started) * 1000)

    return {
        "success": True,
        "type": payload.type,
        "value": payload.value,
        "total_apis": len(configs),
        "response_time_ms": elapsed_ms,
        "results": [
            {
                "success": result.reputation != "error",
                "api_name": config.name,
                "data": result.public_view(),
            }
            for config, result in zip(configs, results)
        ],
    }


@router.post("/scam-check")
def scam_check(
    payload: ScamCheckRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    configs = enabled_configs_for(db, payload.type)
    if not configs:
        raise HTTPException(
            status_code=404,
            detail=f"No API configuration found for type: {payload.type}",
        )

    result = lookup_scam_data(payload.type, payload.input, configs[0])
    return {"success": True, "result": result.public_view()}


def _no_config_result(check: ScamCheckRequest) -> ScamLookupResult:
    return ScamLookupResult(
        type=check.type,
        input=check.input,
        provider="none",
        reputation="no config",
        status="unknown",
        details={"error": f"No API configuration found for type: {check.type}"},
        timestamp=utc_timestamp(),
    )


@router.post("/scam-check/batch")
def scam_check_batch(
    payload: ScamCheckBatchRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not payload.checks:
        raise HTTPException(status_code=400, detail="Checks array is required and must not be empty")

    if len(payload.checks) > MAX_BATCH_CHECKS:
        raise HTTPException(
            status_code=400,
            detail=f"Maximum {MAX_BATCH_CHECKS} checks per batch request",
        )

    results = []
    for check in payload.checks:
        configs = enabled_configs_for(db, check.type)
        if configs:
            result = lookup_scam_data(check.type, check.input, configs[0])
        else:
            result = _no_config_result(check)
        results.append(result.public_view())

    return {"success": True, "results": results}
