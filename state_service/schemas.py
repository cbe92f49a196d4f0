from __future__ import annotations

from pydantic import BaseModel


class StateWriteResponse(BaseModel):
    ok: bool
    user_id: str
    updated_at: str
