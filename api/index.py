"""Vercel serverless entrypoint for the wait-list signup form.

The site posts ``{firstName, phone, postcode}`` here; the signup is
forwarded to Klaviyo. Settings are read from the environment (and a local
``.env`` during development) when the first request arrives.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

# Ensure project root is on the path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from core.config import KlaviyoSettings  # noqa: E402
from core.forwarder import SubscriptionForwarder  # noqa: E402
from core.handler import handle_subscribe  # noqa: E402

load_dotenv()
logging.basicConfig(level=logging.INFO)

_forwarder: SubscriptionForwarder | None = None


def get_forwarder() -> SubscriptionForwarder:
    """Build the forwarder once per cold start.

    A ``ConfigurationError`` is not cached, so the next request retries once
    the environment is fixed.
    """
    global _forwarder
    if _forwarder is None:
        _forwarder = SubscriptionForwarder(KlaviyoSettings.from_env())
    return _forwarder


def handler(request):
    """Vercel Python serverless function handler."""
    return handle_subscribe(request, get_forwarder)
