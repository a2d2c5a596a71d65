import secrets
from typing import Optional

from fastapi import Header, HTTPException

from app.core.config import get_settings


settings = get_settings()


def require_admin_key(x_admin_key: Optional[str] = Header(default=None)) -> None:
    configured = settings.admin_api_key
    if not configured:
        raise HTTPException(status_code=404, detail="Not found")
    if not x_admin_key or not secrets.compare_digest(x_admin_key, configured):
        raise HTTPException(status_code=403, detail="Admin access required")
