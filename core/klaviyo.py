"""Minimal Klaviyo REST client covering profile upsert and list membership."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from core.config import KlaviyoSettings

logger = logging.getLogger(__name__)

JSON_API_TYPE = "application/vnd.api+json"


class KlaviyoClient:
    """Issues single-attempt calls against the Klaviyo profiles and lists APIs."""

    def __init__(
        self,
        settings: KlaviyoSettings,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self._http = httpx.Client(
            base_url=settings.base_url,
            headers={
                "Authorization": f"Klaviyo-API-Key {settings.api_key}",
                "revision": settings.revision,
                "accept": JSON_API_TYPE,
                "content-type": JSON_API_TYPE,
            },
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def create_profile(self, attributes: dict[str, Any]) -> httpx.Response:
        body = {"data": {"type": "profile", "attributes": attributes}}
        resp = self._http.post("/api/profiles/", json=body)
        logger.info("Create profile response: %d", resp.status_code)
        return resp

    def update_profile(self, profile_id: str, attributes: dict[str, Any]) -> httpx.Response:
        body = {"data": {"type": "profile", "id": profile_id, "attributes": attributes}}
        resp = self._http.patch(f"/api/profiles/{profile_id}/", json=body)
        logger.info("Update profile %s response: %d", profile_id, resp.status_code)
        return resp

    def add_profiles_to_list(self, list_id: str, profile_ids: list[str]) -> httpx.Response:
        body = {"data": [{"type": "profile", "id": pid} for pid in profile_ids]}
        resp = self._http.post(f"/api/lists/{list_id}/relationships/profiles/", json=body)
        logger.info("Add to list %s response: %d", list_id, resp.status_code)
        return resp


def _json_or_empty(resp: httpx.Response) -> dict[str, Any]:
    try:
        data = resp.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def created_profile_id(resp: httpx.Response) -> str | None:
    """Return ``data.id`` from a successful create response."""
    data = _json_or_empty(resp).get("data")
    if isinstance(data, dict) and data.get("id"):
        return str(data["id"])
    return None


def duplicate_profile_id(resp: httpx.Response) -> str | None:
    """Return the existing profile id carried by a 409 conflict response."""
    errors = _json_or_empty(resp).get("errors") or []
    if not isinstance(errors, list):
        return None
    for error in errors:
        if not isinstance(error, dict):
            continue
        meta = error.get("meta") or {}
        if isinstance(meta, dict) and meta.get("duplicate_profile_id"):
            return str(meta["duplicate_profile_id"])
    return None


def error_summary(resp: httpx.Response) -> str:
    """Status plus the ``code``/``title`` of each JSON:API error.

    ``detail`` and ``source`` are left out since they can echo the
    submitted profile attributes.
    """
    parts = []
    errors = _json_or_empty(resp).get("errors") or []
    if isinstance(errors, list):
        for error in errors:
            if isinstance(error, dict):
                code = error.get("code") or "-"
                title = error.get("title") or ""
                parts.append(f"{code} {title}".strip())
    summary = f"status={resp.status_code}"
    if parts:
        summary += " errors=" + "; ".join(parts)
    return summary
