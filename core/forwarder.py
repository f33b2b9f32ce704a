"""Wait-list signup forwarding: create-or-update a Klaviyo profile and add it to a list."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import httpx

from core.config import KlaviyoSettings
from core.errors import IntegrationError
from core.klaviyo import (
    KlaviyoClient,
    created_profile_id,
    duplicate_profile_id,
    error_summary,
)
from core.models import Submission, SubscribeResult, mask_phone

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    stamp = moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


class SubscriptionForwarder:
    """Upserts a signup into Klaviyo.

    Klaviyo has no native upsert, so the flow is emulated: create the
    profile; on a 409 conflict update the duplicate it names; then add the
    resolved profile to the configured list. Each call is made once.
    """

    def __init__(
        self,
        settings: KlaviyoSettings,
        client: KlaviyoClient | None = None,
        transport: httpx.BaseTransport | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.settings = settings
        self.client = client or KlaviyoClient(settings, transport=transport)
        self.clock = clock

    def _location(self, submission: Submission) -> dict[str, str]:
        return {"zip": submission.postcode, "country": self.settings.country}

    def profile_attributes(self, submission: Submission) -> dict[str, Any]:
        return {
            "phone_number": submission.phone,
            "first_name": submission.first_name,
            "location": self._location(submission),
            "properties": {
                "postcode": submission.postcode,
                "source": self.settings.source,
                "signup_date": format_timestamp(self.clock()),
            },
        }

    def update_attributes(self, submission: Submission) -> dict[str, Any]:
        # phone_number is the dedup key and signup_date keeps the first signup.
        return {
            "first_name": submission.first_name,
            "location": self._location(submission),
            "properties": {
                "postcode": submission.postcode,
                "source": self.settings.source,
            },
        }

    def upsert_profile(self, submission: Submission) -> tuple[str, bool]:
        """Return ``(profile_id, created)`` for the submission's profile."""
        resp = self.client.create_profile(self.profile_attributes(submission))

        if resp.is_success:
            profile_id = created_profile_id(resp)
            if not profile_id:
                raise IntegrationError("missing_profile_id", f"status={resp.status_code}")
            logger.info("Created profile %s for %s", profile_id, mask_phone(submission.phone))
            return profile_id, True

        if resp.status_code == 409:
            profile_id = duplicate_profile_id(resp)
            if not profile_id:
                raise IntegrationError("missing_duplicate_id", error_summary(resp))
            logger.info("Profile already exists (%s); updating", profile_id)
            update = self.client.update_profile(profile_id, self.update_attributes(submission))
            if not update.is_success:
                logger.warning(
                    "Profile update failed for %s: %s", profile_id, error_summary(update)
                )
            return profile_id, False

        raise IntegrationError("profile_create_failed", error_summary(resp))

    def subscribe(self, submission: Submission) -> SubscribeResult:
        profile_id, created = self.upsert_profile(submission)
        result = SubscribeResult(profile_id=profile_id, created=created)

        resp = self.client.add_profiles_to_list(self.settings.list_id, [profile_id])
        if resp.is_success:
            result.list_added = True
        else:
            logger.warning(
                "Could not add profile %s to list %s: %s",
                profile_id, self.settings.list_id, error_summary(resp),
            )
        return result

    def close(self) -> None:
        self.client.close()
