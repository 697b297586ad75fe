import logging

from fastapi import Request
from sqlalchemy.orm import Session

from beaware.models.audit_log import AuditLog

logger = logging.getLogger(__name__)

SCAM_REPORTED = "SCAM_REPORTED"
SCAM_REPORT_VERIFIED = "SCAM_REPORT_VERIFIED"
SCAM_REPORT_UNVERIFIED = "SCAM_REPORT_UNVERIFIED"
SCAM_REPORT_PUBLISHED = "SCAM_REPORT_PUBLISHED"
SCAM_REPORT_UNPUBLISHED = "SCAM_REPORT_UNPUBLISHED"
CONSOLIDATED_SCAM_VERIFIED = "CONSOLIDATED_SCAM_VERIFIED"
API_CONFIG_CREATED = "API_CONFIG_CREATED"
API_CONFIG_UPDATED = "API_CONFIG_UPDATED"
API_CONFIG_DELETED = "API_CONFIG_DELETED"
LOGIN_SUCCESS = "LOGIN_SUCCESS"
LOGIN_FAILED = "LOGIN_FAILED"

MAX_USER_AGENT_LENGTH = 512
MAX_REQUEST_ID_LENGTH = 64


def client_ip(request: Request) -> str | None:
    # first hop of X-Forwarded-For when running behind a proxy
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return request.client.host if request.client else None


def create_audit_log(
    db: Session,
    event_type: str,
    event_description: str,
    request: Request | None = None,
    user_id=None,
    auto_commit: bool = True,
) -> AuditLog:
    """
    Record a moderation, config or login event.

    The row carries the request id assigned by RequestLoggingMiddleware
    so it can be matched to the access log line. With auto_commit=False
    the row joins the caller's transaction and is committed (or rolled
    back) with it.
    """
    entry = AuditLog(
        user_id=user_id,
        event_type=event_type,
        event_description=event_description,
    )

    if request is not None:
        entry.ip_address = client_ip(request)
        entry.user_agent = (request.headers.get("user-agent") or "")[:MAX_USER_AGENT_LENGTH] or None
        request_id = getattr(request.state, "request_id", None)
        entry.request_id = request_id[:MAX_REQUEST_ID_LENGTH] if request_id else None

    db.add(entry)

    logger.info(
        "audit_event type=%s user_id=%s request_id=%s",
        event_type,
        user_id,
        entry.request_id,
    )

    if auto_commit:
        db.commit()
    return entry
