from pathlib import Path
import json
import sys

import httpx
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from core.config import KlaviyoSettings


class FakeKlaviyo:
    """Records requests and answers them from a ``(method, path) -> Response`` table."""

    def __init__(self) -> None:
        self.calls: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], httpx.Response] = {}
        self.transport = httpx.MockTransport(self._handle)

    def on(self, method: str, path: str, status: int, body: dict | None = None) -> None:
        self.routes[(method, path)] = httpx.Response(status, json=body or {})

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"errors": [{"detail": "not mocked"}]})
        return route

    def paths(self) -> list[tuple[str, str]]:
        return [(r.method, r.url.path) for r in self.calls]

    def body(self, index: int) -> dict:
        return json.loads(self.calls[index].content)


@pytest.fixture
def settings() -> KlaviyoSettings:
    return KlaviyoSettings(api_key="pk_test", list_id="LIST1")


@pytest.fixture
def klaviyo() -> FakeKlaviyo:
    return FakeKlaviyo()
