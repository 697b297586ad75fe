import logging

from fastapi import Depends, HTTPException, Request

from beaware.models.user import User
from beaware.routes.auth import get_current_user

logger = logging.getLogger(__name__)


def require_admin(
    request: Request,
    current_user: User = Depends(get_current_user),
) -> User:
    if not current_user.is_admin:
        logger.warning(
            "admin_access_denied user_id=%s role=%s path=%s method=%s",
            current_user.id,
            current_user.role,
            request.url.path,
            request.method,
        )
        raise HTTPException(status_code=403, detail="Admin privileges required")
    return current_user
