from __future__ import annotations

import json
from datetime import datetime, timezone

from sqlalchemy import text as sql_text

from state_service.db import get_sessionmaker
from state_service.db_init import USER_STATE_TABLE


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


async def get_state(user_id: str) -> dict | None:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(f"SELECT payload_json FROM {USER_STATE_TABLE} WHERE user_id = :user_id"),
            {"user_id": user_id},
        )).fetchone()
    if not row:
        return None
    try:
        payload = json.loads(row[0] or "{}")
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else None


async def put_state(user_id: str, payload: dict) -> str:
    updated_at = _now_iso()
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {USER_STATE_TABLE} (user_id, payload_json, updated_at)
                VALUES (:user_id, :payload_json, :updated_at)
                ON CONFLICT(user_id) DO UPDATE SET
                    payload_json=EXCLUDED.payload_json,
                    updated_at=EXCLUDED.updated_at
                """
            ),
            {
                "user_id": user_id,
                "payload_json": json.dumps(payload, ensure_ascii=False),
                "updated_at": updated_at,
            },
        )
        await session.commit()
    return updated_at
