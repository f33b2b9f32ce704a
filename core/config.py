"""Klaviyo settings for the subscription endpoint."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from core.errors import ConfigurationError

DEFAULT_BASE_URL = "https://a.klaviyo.com"
DEFAULT_REVISION = "2024-02-15"
DEFAULT_SOURCE = "Ferguson Livestock Website"
DEFAULT_COUNTRY = "AU"


def resolve_api_key(*env_names: str, environ: Mapping[str, str] | None = None) -> str:
    """Return the first non-empty value among the named env vars."""
    env = os.environ if environ is None else environ
    for name in env_names:
        value = (env.get(name) or "").strip()
        if value:
            return value
    return ""


@dataclass(frozen=True)
class KlaviyoSettings:
    """Everything the forwarder needs to talk to Klaviyo.

    Built once at startup. Construction fails with ``ConfigurationError``
    when the API key or list id is blank, so a request never reaches the
    outbound calls with a half-configured deployment.
    """

    api_key: str = field(repr=False)
    list_id: str
    revision: str = DEFAULT_REVISION
    source: str = DEFAULT_SOURCE
    country: str = DEFAULT_COUNTRY
    base_url: str = DEFAULT_BASE_URL

    def __post_init__(self) -> None:
        missing = [
            name for name in ("api_key", "list_id")
            if not (getattr(self, name) or "").strip()
        ]
        if missing:
            raise ConfigurationError("missing_settings", ", ".join(missing))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> KlaviyoSettings:
        env = os.environ if environ is None else environ
        return cls(
            api_key=resolve_api_key(
                "KLAVIYO_API_KEY", "KLAVIYO_PRIVATE_API_KEY", environ=env
            ),
            list_id=(env.get("KLAVIYO_LIST_ID") or "").strip(),
            revision=(env.get("KLAVIYO_REVISION") or "").strip() or DEFAULT_REVISION,
            source=(env.get("KLAVIYO_SOURCE") or "").strip() or DEFAULT_SOURCE,
        )
