from typing import Optional

from fastapi import Depends, Header, HTTPException

from app.core.config import settings
from app.core.errors import PermissionDenied


def get_optional_user_id(x_user_id: Optional[str] = Header(default=None)) -> Optional[str]:
    """Identity comes from the auth gateway in front of the API."""
    return x_user_id or None


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    if not x_user_id:
        raise HTTPException(401, "Authentication required")
    return x_user_id


def get_operator_user_id(user_id: str = Depends(get_current_user_id)) -> str:
    """Batch jobs are limited to the ids listed in OPERATOR_USER_IDS."""
    if user_id not in settings.OPERATOR_USER_IDS:
        raise PermissionDenied("Operator access required")
    return user_id
