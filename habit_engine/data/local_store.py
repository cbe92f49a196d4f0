from __future__ import annotations

from sqlalchemy import create_engine, text as sql_text

LOCAL_STATE_TABLE = "local_state"


def get_engine(database_url):
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            future=True,
        )
    return create_engine(database_url, pool_pre_ping=True, future=True)


class LocalStore:
    """Synchronous key/value store kept in a single SQL table."""

    def __init__(self, database_url):
        self._engine = get_engine(database_url)
        self._init_table()

    def _init_table(self):
        with self._engine.begin() as conn:
            conn.execute(
                sql_text(
                    f"""
                    CREATE TABLE IF NOT EXISTS {LOCAL_STATE_TABLE} (
                        key TEXT PRIMARY KEY,
                        value TEXT
                    )
                    """
                )
            )

    def get(self, key):
        with self._engine.connect() as conn:
            row = conn.execute(
                sql_text(f"SELECT value FROM {LOCAL_STATE_TABLE} WHERE key = :key"),
                {"key": key},
            ).fetchone()
        return row[0] if row else None

    def set(self, key, value):
        self.set_many({key: value})

    def set_many(self, values):
        if not values:
            return
        with self._engine.begin() as conn:
            for key, value in values.items():
                conn.execute(
                    sql_text(
                        f"INSERT INTO {LOCAL_STATE_TABLE} (key, value) VALUES (:key, :value) "
                        "ON CONFLICT(key) DO UPDATE SET value=EXCLUDED.value"
                    ),
                    {"key": key, "value": value},
                )

    def delete(self, key):
        with self._engine.begin() as conn:
            conn.execute(
                sql_text(f"DELETE FROM {LOCAL_STATE_TABLE} WHERE key = :key"),
                {"key": key},
            )

    def close(self):
        self._engine.dispose()


class MemoryStore:
    def __init__(self, initial=None):
        self._values = dict(initial or {})

    def get(self, key):
        return self._values.get(key)

    def set(self, key, value):
        self._values[key] = value

    def set_many(self, values):
        self._values.update(values)

    def delete(self, key):
        self._values.pop(key, None)

    def close(self):
        return None

