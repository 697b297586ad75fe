import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from beaware.db import get_db
from beaware.dependencies.access import require_admin
from beaware.models.api_config import ApiConfig
from beaware.models.user import User
from beaware.routes.auth import get_current_user
from beaware.schemas.api_config_schemas import ApiConfigCreate, ApiConfigUpdate
from beaware.schemas.lookup_schemas import ApiConfigTestRequest, ScamLookupResult
from beaware.services import audit_logger
from beaware.services.audit_logger import create_audit_log
from beaware.services.lookup import manager as lookup_manager
from beaware.services.lookup.base import utc_timestamp

router = APIRouter(prefix="/api-configs", tags=["API Configs"])
logger = logging.getLogger(__name__)

NULLABLE_FIELDS = {"description", "parameter_mapping", "headers"}


def mask_api_key(api_key: str | None) -> str:
    if not api_key:
        return ""
    return "***" + api_key[-4:]


def serialize_config(config: ApiConfig) -> dict:
    return {
        "id": config.id,
        "name": config.name,
        "type": config.type,
        "url": config.url,
        "api_key": mask_api_key(config.api_key),
        "enabled": config.enabled,
        "description": config.description,
        "rate_limit": config.rate_limit,
        "timeout": config.timeout,
        "parameter_mapping": config.parameter_mapping,
        "headers": config.headers,
        "created_at": config.created_at,
        "updated_at": config.updated_at,
    }


def _get_config_or_404(db: Session, config_id: int) -> ApiConfig:
    config = db.get(ApiConfig, config_id)
    if not config:
        raise HTTPException(status_code=404, detail="API configuration not found")
    return config


@router.get("/public")
def list_public_configs(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    configs = (
        db.query(ApiConfig)
        .filter(ApiConfig.enabled.is_(True))
        .order_by(ApiConfig.id.asc())
        .all()
    )
    # no urls, keys or templates outside the admin panel
    return [
        {
            "id": c.id,
            "name": c.name,
            "type": c.type,
            "description": c.description,
            "enabled": c.enabled,
        }
        for c in configs
    ]


@router.get("")
def list_configs(
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    configs = db.query(ApiConfig).order_by(ApiConfig.id.asc()).all()
    return [serialize_config(c) for c in configs]


@router.post("", status_code=201)
def create_config(
    payload: ApiConfigCreate,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    config = ApiConfig(**payload.model_dump())
    db.add(config)
    db.flush()

    create_audit_log(
        db=db,
        user_id=admin.id,
        event_type=audit_logger.API_CONFIG_CREATED,
        event_description=f"API config created: {config.name} ({config.type})",
        request=request,
        auto_commit=False,
    )
    db.commit()
    db.refresh(config)

    logger.info("api_config_created config_id=%s name=%s type=%s", config.id, config.name, config.type)
    return serialize_config(config)


@router.put("/{config_id}")
def update_config(
    config_id: int,
    payload: ApiConfigUpdate,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    config = _get_config_or_404(db, config_id)

    updates = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or field in NULLABLE_FIELDS
    }
    # the admin panel echoes the masked key back when it is unchanged
    if updates.get("api_key", "").startswith("***"):
        updates.pop("api_key")

    for field, value in updates.items():
        setattr(config, field, value)

    create_audit_log(
        db=db,
        user_id=admin.id,
        event_type=audit_logger.API_CONFIG_UPDATED,
        event_description=f"API config #{config_id} updated: {', '.join(sorted(updates)) or 'no changes'}",
        request=request,
        auto_commit=False,
    )
    db.commit()
    db.refresh(config)

    return serialize_config(config)


@router.delete("/{config_id}")
def delete_config(
    config_id: int,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    config = _get_config_or_404(db, config_id)
    name = config.name

    db.delete(config)
    create_audit_log(
        db=db,
        user_id=admin.id,
        event_type=audit_logger.API_CONFIG_DELETED,
        event_description=f"API config deleted: {name}",
        request=request,
        auto_commit=False,
    )
    db.commit()

    return {"success": True, "message": "API configuration deleted successfully"}


@router.post("/{config_id}/test")
def test_config(
    config_id: int,
    payload: ApiConfigTestRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    config = _get_config_or_404(db, config_id)

    if not config.enabled:
        disabled = ScamLookupResult(
            type=payload.type,
            input=payload.test_input or "test",
            provider=config.name,
            reputation="disabled",
            status="unknown",
            details={"message": "API configuration is disabled"},
            timestamp=utc_timestamp(),
        )
        return {"success": True, "test_result": disabled.model_dump()}

    logger.info("api_config_test config_id=%s name=%s type=%s", config.id, config.name, payload.type)

    result = lookup_manager.test_api_config(payload.type, config, payload.test_input)

    # admins see the raw response and the outbound request
    return {
        "success": True,
        "test_result": result.model_dump(),
        "message": f"Test completed for {config.name}",
    }
