from __future__ import annotations

import asyncio
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

STATE_PATH = "/api/state"


class RemoteStateError(RuntimeError):
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


def _build_session():
    session = requests.Session()
    retry = Retry(
        total=2,
        backoff_factor=0.5,
        status_forcelist=(502, 503, 504),
        allowed_methods=("GET", "PUT"),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry, pool_connections=4, pool_maxsize=4)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class RemoteStateClient:
    """Client for ``GET``/``PUT /api/state?userId=<id>`` on the remote state service.

    The blocking ``requests`` calls run in a worker thread so the engine's
    timers keep ticking while a pull or push is outstanding.
    """

    def __init__(self, base_url, user_id, token=None, timeout=None, session=None):
        self.base_url = str(base_url or "").strip().rstrip("/")
        self.user_id = user_id
        self.token = token
        self.timeout = timeout
        self._session = session or _build_session()

    def is_enabled(self):
        return bool(self.base_url)

    def request(self, method: str, json: dict | None = None) -> Any:
        if not self.base_url:
            raise RemoteStateError("API_BASE_URL not configured")
        if not self.user_id:
            raise RemoteStateError("Missing user id for state request")
        headers = {}
        if self.token:
            headers["X-Backend-Token"] = self.token
        url = f"{self.base_url}{STATE_PATH}"
        response = self._session.request(
            method,
            url,
            params={"userId": self.user_id},
            json=json,
            headers=headers,
            timeout=self.timeout,
        )
        if not response.ok:
            try:
                detail = response.json()
            except ValueError:
                detail = response.text
            raise RemoteStateError(
                f"State API error {response.status_code} {response.reason}: {detail}",
                status_code=response.status_code,
            )
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def fetch_state(self) -> Any:
        return await asyncio.to_thread(self.request, "GET")

    async def save_state(self, snapshot: dict) -> None:
        await asyncio.to_thread(self.request, "PUT", snapshot)

    def close(self):
        self._session.close()
