"""Thin v0 Platform API client.

Every request is a single attempt: no retries and no timeout, so a hung call
blocks the caller. Status handling is left to the callers because each
endpoint maps failures differently (the versions endpoint tolerates one 404).
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from v0fetch.core.constants import DEFAULT_API_BASE
from v0fetch.core.env import _env_str

logger = logging.getLogger(__name__)


def api_base_url() -> str:
    return (_env_str("V0FETCH_API_BASE") or DEFAULT_API_BASE).rstrip("/")

def path_segment(value: str) -> str:
    """Quote an identifier so it stays a single URL path segment."""
    return quote(str(value), safe="")


class V0Client:
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or api_base_url()).rstrip("/")
        self._http = httpx.Client(
            base_url=self.base_url,
            timeout=None,
            transport=transport,
        )

    def get(
        self,
        path: str,
        api_key: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        accept: Optional[str] = None,
    ) -> httpx.Response:
        headers = {"Authorization": f"Bearer {api_key}"}
        if accept:
            headers["Accept"] = accept
        else:
            headers["Content-Type"] = "application/json"
        logger.debug("GET %s%s params=%s", self.base_url, path, params)
        return self._http.get(path, params=params, headers=headers)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "V0Client":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
