import pytest
from starlette.types import Scope, Receive, Send


class RecordingSend:
    """Stands in for the server's send callable and keeps every message."""
    def __init__(self):
        self.messages = []

    async def __call__(self, message):
        self.messages.append(message)

    def headers(self, index: int = 0) -> list[tuple[bytes, bytes]]:
        return [tuple(h) for h in self.messages[index]["headers"]]

    def set_cookies(self, index: int = 0) -> list[str]:
        return [v.decode() for k, v in self.headers(index) if k == b"set-cookie"]


def cookie_backend(*cookies: str, status: int = 200, body: bytes = b"OK"):
    """Build a raw ASGI backend that sets the given Set-Cookie values."""
    async def backend(scope: Scope, receive: Receive, send: Send):
        headers = [(b"content-type", b"text/plain")]
        headers += [(b"set-cookie", c.encode("latin-1")) for c in cookies]
        await send({"type": "http.response.start", "status": status, "headers": headers})
        await send({"type": "http.response.body", "body": body})
    return backend


@pytest.fixture
def recording_send():
    return RecordingSend()


@pytest.fixture
def two_cookie_backend():
    return cookie_backend("a=1; Path=/x", "b=2; Path=/y; Secure")


@pytest.fixture
def make_cookie_backend():
    return cookie_backend
