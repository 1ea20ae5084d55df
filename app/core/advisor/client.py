"""
Analytics Client — Thin Async REST Client
===========================================
httpx wrapper over the analytics platform (Lightdash-compatible REST API).
Every call returns the payload's `results`; failures become structured errors:

  non-2xx                      → UpstreamHTTPError (message "HTTP <status>: ...")
  {"status": "error", ...}     → UpstreamAPIError

No retry or caching here; the orchestrator wraps calls with both.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from .errors import UpstreamAPIError, UpstreamHTTPError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://app.lightdash.cloud"
DEFAULT_TIMEOUT_SECONDS = 30.0


class AnalyticsClient:

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        api_key: Optional[str] = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"ApiKey {api_key}"
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout_seconds,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Optional[Any] = None) -> "AnalyticsClient":
        if settings is None:
            from app.config import settings
        return cls(
            base_url=settings.ANALYTICS_API_URL,
            api_key=settings.ANALYTICS_API_KEY,
            timeout_seconds=settings.ANALYTICS_TIMEOUT_SECONDS,
        )

    async def close(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        logger.debug(f"{method} {path}")
        resp = await self._http.request(method, path, json=json)
        if resp.is_error:
            raise UpstreamHTTPError(resp.status_code, resp.reason_phrase)

        payload = resp.json()
        if isinstance(payload, dict) and payload.get("status") == "error":
            error = payload.get("error") or {}
            raise UpstreamAPIError(
                name=error.get("name", "UnknownError"),
                message=error.get("message"),
                data=error.get("data"),
            )
        return payload.get("results") if isinstance(payload, dict) else payload

    # ──────────────────────────────────────────────────────────
    # Endpoints
    # ──────────────────────────────────────────────────────────

    async def list_projects(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/v1/org/projects") or []

    async def get_explore(self, project_uuid: str, explore_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/api/v1/projects/{project_uuid}/explores/{explore_id}")

    async def get_saved_chart(self, chart_uuid: str) -> Dict[str, Any]:
        return await self._request("GET", f"/api/v1/saved/{chart_uuid}")

    async def run_saved_chart(self, chart_uuid: str, invalidate_cache: bool = False) -> Dict[str, Any]:
        return await self._request(
            "POST", f"/api/v1/saved/{chart_uuid}/results",
            json={"invalidateCache": invalidate_cache},
        )

    async def list_project_charts(self, project_uuid: str) -> List[Dict[str, Any]]:
        return await self._request("GET", f"/api/v1/projects/{project_uuid}/charts") or []
