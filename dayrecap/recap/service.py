"""Recap service boundary: the protocol the sync engine consumes and an HTTP client for it.

The remote API computes the insight content; this module only moves recaps
across the wire and turns every failure into ``ServiceError``.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from dayrecap.recap.errors import ServiceError
from dayrecap.recap.models import Recap, RecapPreferences, day_key

logger = logging.getLogger("dayrecap.service")

DEFAULT_TIMEOUT = 30.0


class RecapService(Protocol):
    async def fetch(self, date: str) -> Recap | None:
        """Return the stored recap for ``date``, or None if there is none."""
        ...

    async def generate(self, date: str) -> Recap:
        """Compute (or recompute) the recap for ``date``."""
        ...

    async def update_preferences(self, date: str, preferences: RecapPreferences) -> None:
        ...

    async def delete(self, date: str) -> None:
        ...


class HttpRecapService:
    """``RecapService`` backed by the recap HTTP API.

    Pass ``client`` to share a connection pool (or an ``httpx.ASGITransport``
    in tests); otherwise one is created and closed by ``aclose()``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        headers = {"Accept": "application/json"}
        if api_token:
            headers["Authorization"] = f"Bearer {api_token}"
        self._headers = headers
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_config(cls, cfg: dict[str, Any], client: httpx.AsyncClient | None = None) -> HttpRecapService:
        svc = cfg["service"]
        return cls(
            svc["base_url"],
            api_token=svc.get("api_token") or None,
            timeout=float(svc.get("timeout", DEFAULT_TIMEOUT)),
            client=client,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpRecapService:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # RecapService
    # ------------------------------------------------------------------

    async def fetch(self, date: str) -> Recap | None:
        key = day_key(date)
        resp = await self._request("GET", f"/recaps/{key}", allow_404=True)
        if resp.status_code == 404:
            logger.info("No recap stored for %s", key)
            return None
        return self._parse_recap(resp, key)

    async def generate(self, date: str) -> Recap:
        key = day_key(date)
        resp = await self._request("POST", f"/recaps/{key}/generate")
        recap = self._parse_recap(resp, key)
        logger.info("Generated recap %s for %s", recap.id, key)
        return recap

    async def update_preferences(self, date: str, preferences: RecapPreferences) -> None:
        key = day_key(date)
        await self._request("PUT", f"/recaps/{key}/preferences", json=preferences.to_dict())

    async def delete(self, date: str) -> None:
        key = day_key(date)
        await self._request("DELETE", f"/recaps/{key}", allow_404=True)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        allow_404: bool = False,
    ) -> httpx.Response:
        url = f"{self._base_url}{path}"
        try:
            resp = await self._client.request(method, url, json=json, headers=self._headers)
        except httpx.TimeoutException as exc:
            logger.warning("%s %s timed out: %s", method, url, exc)
            raise ServiceError("Recap service timed out") from exc
        except httpx.RequestError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise ServiceError(f"Could not reach recap service: {exc}") from exc

        if allow_404 and resp.status_code == 404:
            return resp
        if resp.status_code in (401, 403):
            logger.warning("%s %s was refused with %d", method, url, resp.status_code)
            raise ServiceError("Not authorized to access recaps", status_code=resp.status_code)
        if resp.is_error:
            logger.warning("%s %s returned %d: %s", method, url, resp.status_code, resp.text[:200])
            raise ServiceError(
                f"Recap service error ({resp.status_code}): {_error_detail(resp)}",
                status_code=resp.status_code,
            )
        return resp

    def _parse_recap(self, resp: httpx.Response, key: str) -> Recap:
        try:
            data = resp.json()
        except ValueError as exc:
            raise ServiceError(f"Recap service returned invalid JSON for {key}") from exc
        if not isinstance(data, dict):
            raise ServiceError(f"Recap service returned unexpected payload for {key}")
        try:
            return Recap.from_dict(data)
        except (KeyError, TypeError, ValueError) as exc:
            raise ServiceError(f"Malformed recap for {key}: {exc}") from exc


def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200] or resp.reason_phrase
    if isinstance(body, dict):
        return str(body.get("detail") or body.get("error") or body)
    return str(body)
