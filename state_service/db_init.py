from __future__ import annotations

from sqlalchemy import text as sql_text

from state_service.db import get_engine


USER_STATE_TABLE = "user_state"


async def init_db():
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {USER_STATE_TABLE} (
                    user_id TEXT PRIMARY KEY,
                    payload_json TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
        )
