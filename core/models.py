"""Data models for wait-list signups."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from core.errors import ValidationError

COUNTRY_CALLING_CODE = "+61"
REQUIRED_FIELDS = ("firstName", "phone", "postcode")

_POSTCODE_RE = re.compile(r"[0-9]{4}")
_WHITESPACE_RE = re.compile(r"\s+")
_NON_DIAL_RE = re.compile(r"[^0-9+]")


def normalize_phone(raw: str) -> str:
    """Convert a loosely formatted Australian number to E.164-like form.

    ``"0412 345 678"`` and ``"412345678"`` both become ``"+61412345678"``.
    Numbers that already start with ``+`` only lose their formatting.
    """
    phone = _NON_DIAL_RE.sub("", _WHITESPACE_RE.sub("", raw))
    if phone.startswith("0"):
        return COUNTRY_CALLING_CODE + phone[1:]
    if not phone.startswith("+"):
        return COUNTRY_CALLING_CODE + phone
    return phone


def mask_phone(phone: str) -> str:
    """Hide all but the last three digits, for log lines."""
    if len(phone) <= 3:
        return "***"
    return "*" * (len(phone) - 3) + phone[-3:]


def _text(value: Any) -> str:
    if value is None or isinstance(value, (bool, dict, list)):
        return ""
    return str(value)


@dataclass(frozen=True)
class Submission:
    first_name: str
    phone: str
    postcode: str

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> Submission:
        """Validate a decoded request body and normalize the phone number."""
        values = {name: _text(data.get(name)) for name in REQUIRED_FIELDS}
        if not all(value.strip() for value in values.values()):
            raise ValidationError("missing_fields")

        if not _POSTCODE_RE.fullmatch(values["postcode"]):
            raise ValidationError("invalid_postcode", values["postcode"])

        return cls(
            first_name=values["firstName"].strip(),
            phone=normalize_phone(values["phone"]),
            postcode=values["postcode"],
        )


@dataclass
class SubscribeResult:
    profile_id: str
    created: bool
    list_added: bool = False
