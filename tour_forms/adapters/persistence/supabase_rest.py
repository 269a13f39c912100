"""Supabase (PostgREST) persistence adapter over httpx."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from tour_forms.adapters.persistence.base import AbstractPersistence, PersistenceResult
from tour_forms.core.errors import PersistenceAppError

logger = logging.getLogger(__name__)


def _eq_filter(value: Any) -> str:
    if isinstance(value, bool):
        value = "true" if value else "false"
    return f"eq.{value}"


def _describe_error(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"Storage error (HTTP {response.status_code})"
    if isinstance(body, dict) and body.get("message"):
        return f"Storage error (HTTP {response.status_code}): {body['message']}"
    return f"Storage error (HTTP {response.status_code})"


class SupabaseRestPersistence(AbstractPersistence):
    """Insert and select rows through the Supabase REST endpoint.

    Uses the service-role key, so row-level security is bypassed; this client
    must only ever run server-side.
    """

    def __init__(
        self,
        url: str,
        service_key: str,
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the REST client.

        Args:
            url: Supabase project URL (e.g., https://xyz.supabase.co).
            service_key: Service-role API key.
            timeout_seconds: Timeout for each request.
            client: Optional preconfigured client (tests inject a MockTransport).
        """
        self._base_url = f"{url.rstrip('/')}/rest/v1"
        self._headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "Content-Type": "application/json",
        }
        self._timeout = timeout_seconds
        self._client = client

    async def _request(
        self,
        method: str,
        table: str,
        *,
        extra_headers: Mapping[str, str] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        url = f"{self._base_url}/{table}"
        headers = {**self._headers, **(extra_headers or {})}
        if self._client is not None:
            return await self._client.request(method, url, headers=headers, **kwargs)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.request(method, url, headers=headers, **kwargs)

    async def create(self, table: str, record: Mapping[str, Any]) -> PersistenceResult:
        try:
            response = await self._request(
                "POST",
                table,
                extra_headers={"Prefer": "return=representation"},
                json=[dict(record)],
            )
        except httpx.HTTPError as exc:
            logger.error(
                "persistence.transport_error",
                extra={"table": table, "operation": "create", "error_type": type(exc).__name__},
            )
            return PersistenceResult(error=f"Storage unavailable: {type(exc).__name__}")

        if response.status_code >= 400:
            return PersistenceResult(error=_describe_error(response))

        rows = response.json()
        if isinstance(rows, list) and rows:
            return PersistenceResult(data=rows[0])
        return PersistenceResult(error="Storage returned no row for insert")

    async def read(self, table: str, filters: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        params = {"select": "*"}
        params.update({column: _eq_filter(value) for column, value in (filters or {}).items()})

        try:
            response = await self._request("GET", table, params=params)
        except httpx.HTTPError as exc:
            raise PersistenceAppError(
                code="persistence_read_failed",
                message=f"Storage unavailable: {type(exc).__name__}",
                details={"table": table},
            ) from exc

        if response.status_code >= 400:
            raise PersistenceAppError(
                code="persistence_read_failed",
                message=_describe_error(response),
                details={"table": table, "http_status": response.status_code},
            )

        rows = response.json()
        return rows if isinstance(rows, list) else []
