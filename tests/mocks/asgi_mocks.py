"""Mock ASGI callables and helpers for middleware testing."""

import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

from starlette.types import Message, Receive, Scope, Send


class MockASGIApp:
    """Mock ASGI application recording every call."""

    def __init__(self, status_code: int = 200, body: bytes = b"downstream"):
        self.status_code = status_code
        self.body = body
        self.calls: List[Dict[str, Any]] = []

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        """ASGI application interface."""
        self.calls.append({
            "scope": scope,
            "timestamp": time.time(),
            "type": scope.get("type"),
            "path": scope.get("path", "/"),
        })
        if scope["type"] != "http":
            return
        await send({
            "type": "http.response.start",
            "status": self.status_code,
            "headers": [(b"content-type", b"text/plain")],
        })
        await send({"type": "http.response.body", "body": self.body})


class MockReceive:
    """Mock ASGI receive callable returning an empty request body."""

    def __init__(self):
        self.call_count = 0

    async def __call__(self) -> Message:
        self.call_count += 1
        return {"type": "http.request", "body": b"", "more_body": False}


class MockSend:
    """Mock ASGI send callable collecting messages."""

    def __init__(self):
        self.messages: List[Message] = []

    async def __call__(self, message: Message) -> None:
        self.messages.append(message)

    def get_status_code(self) -> Optional[int]:
        for message in self.messages:
            if message["type"] == "http.response.start":
                return message["status"]
        return None

    def get_headers(self) -> Dict[str, str]:
        for message in self.messages:
            if message["type"] == "http.response.start":
                return {
                    k.decode("latin-1"): v.decode("latin-1")
                    for k, v in message.get("headers", [])
                }
        return {}

    def get_body(self) -> bytes:
        return b"".join(
            message.get("body", b"")
            for message in self.messages
            if message["type"] == "http.response.body"
        )


class AsgiTestHelper:
    """Helper building ASGI scopes."""

    @staticmethod
    def create_test_scope(
        path: str = "/",
        method: str = "GET",
        headers: Sequence[Tuple[str, str]] = (),
        scope_type: str = "http",
    ) -> Scope:
        return {
            "type": scope_type,
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": method,
            "scheme": "http",
            "path": path,
            "raw_path": path.encode(),
            "query_string": b"",
            "root_path": "",
            "headers": [
                (k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in headers
            ],
            "client": ("127.0.0.1", 12345),
            "server": ("testserver", 80),
        }


class FixedClock:
    """Nanosecond clock that only moves when told to."""

    def __init__(self, now_ns: int = 1_700_000_000_000_000_000):
        self.now_ns = now_ns
        self.call_count = 0

    def __call__(self) -> int:
        self.call_count += 1
        return self.now_ns

    def advance(self, seconds: float) -> None:
        self.now_ns += int(seconds * 1_000_000_000)
