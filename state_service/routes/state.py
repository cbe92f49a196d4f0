from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from state_service.auth import require_backend_token
from state_service import repositories
from state_service.schemas import StateWriteResponse

router = APIRouter(dependencies=[Depends(require_backend_token)])


def _clean_user_id(user_id: str) -> str:
    cleaned = str(user_id or "").strip()
    if not cleaned:
        raise HTTPException(status_code=400, detail="Missing userId")
    return cleaned


@router.get("/api/state")
async def get_state(user_id: str = Query(..., alias="userId")):
    payload = await repositories.get_state(_clean_user_id(user_id))
    if payload is None:
        raise HTTPException(status_code=404, detail="No state stored for user")
    return payload


@router.put("/api/state", response_model=StateWriteResponse)
async def put_state(
    user_id: str = Query(..., alias="userId"),
    snapshot: Dict[str, Any] = Body(...),
):
    cleaned = _clean_user_id(user_id)
    updated_at = await repositories.put_state(cleaned, snapshot)
    return StateWriteResponse(ok=True, user_id=cleaned, updated_at=updated_at)
