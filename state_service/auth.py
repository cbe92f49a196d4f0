from __future__ import annotations

from fastapi import Header, HTTPException

from state_service.settings import get_settings


async def require_backend_token(
    x_backend_token: str | None = Header(default=None, alias="X-Backend-Token"),
) -> None:
    secret = get_settings().backend_session_secret
    if not secret:
        return
    if not x_backend_token or x_backend_token != secret:
        raise HTTPException(status_code=401, detail="Invalid backend token")
