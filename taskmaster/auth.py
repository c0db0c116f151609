from __future__ import annotations

from dataclasses import dataclass

from fastapi import Header, HTTPException

from taskmaster.settings import get_settings


@dataclass(slots=True)
class RequestUser:
    user_id: str
    timezone: str | None = None


async def require_user(
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    x_backend_token: str | None = Header(default=None, alias="X-Backend-Token"),
    x_user_timezone: str | None = Header(default=None, alias="X-User-Timezone"),
) -> RequestUser:
    settings = get_settings()
    if not x_backend_token or x_backend_token != settings.backend_session_secret:
        raise HTTPException(status_code=401, detail="Invalid backend token")
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing user id")
    user_id = x_user_id.strip()
    if settings.allowed_user_ids and user_id not in settings.allowed_user_ids:
        raise HTTPException(status_code=403, detail="User not allowed")
    timezone = (x_user_timezone or "").strip() or None
    return RequestUser(user_id=user_id, timezone=timezone)
