"""Translate serverless requests into forwarder calls and JSON responses."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from typing import Any

from core.errors import ConfigurationError, SubscribeError, ValidationError
from core.forwarder import SubscriptionForwarder
from core.models import Submission

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Successfully subscribed to the wait list!"
GENERIC_ERROR = "An error occurred"


def json_response(status: int, body: dict[str, Any], headers: dict[str, str] | None = None) -> dict:
    return {
        "statusCode": status,
        "headers": {"content-type": "application/json", **(headers or {})},
        "body": json.dumps(body),
    }


def _method(request: Mapping[str, Any]) -> str:
    return str(request.get("method") or request.get("httpMethod") or "").upper()


def parse_body(raw: Any) -> dict[str, Any]:
    """Decode the request body into a JSON object."""
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ValidationError("invalid_body", str(e)) from e
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationError("invalid_body", "empty body")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError("invalid_body", str(e)) from e
    if not isinstance(data, dict):
        raise ValidationError("invalid_body", "expected a JSON object")
    return data


def handle_subscribe(
    request: Mapping[str, Any],
    get_forwarder: Callable[[], SubscriptionForwarder],
) -> dict:
    """Run one signup request end to end and build the response dict."""
    if _method(request) != "POST":
        return json_response(
            405, {"success": False, "error": "Method not allowed"}, {"allow": "POST"}
        )

    try:
        submission = Submission.from_payload(parse_body(request.get("body")))
        forwarder = get_forwarder()
        result = forwarder.subscribe(submission)
    except ValidationError as e:
        logger.info("Rejected signup: %s", e)
        return json_response(e.status_code, {"success": False, "error": e.public_message})
    except ConfigurationError as e:
        logger.error("Missing Klaviyo configuration: %s", e.detail)
        return json_response(e.status_code, {"success": False, "error": e.public_message})
    except SubscribeError as e:
        logger.error("Subscribe failed: %s", e)
        return json_response(e.status_code, {"success": False, "error": e.public_message})
    except Exception:
        logger.exception("Subscribe error")
        return json_response(500, {"success": False, "error": GENERIC_ERROR})

    logger.info(
        "Subscribed profile %s (created=%s, list_added=%s)",
        result.profile_id, result.created, result.list_added,
    )
    return json_response(200, {"success": True, "message": SUCCESS_MESSAGE})
