"""
ASGI `send` decorator that rewrites Set-Cookie headers at header commit.

The interceptor is created per request. It is `Open` until the first
`http.response.start` passes through and `Committed` afterwards:

* the first start message has its Set-Cookie headers parsed, rewritten and
  re-appended (in original order) before it is forwarded;
* a body-bearing message that arrives while still open commits a default
  200 start first, so rewriting cannot be skipped;
* later start messages are suppressed and logged, never forwarded.

Other `http.response.*` messages are ASGI extensions. They are forwarded
only when the server advertised them in `scope["extensions"]`.
"""
import logging
from typing import Optional

from starlette.types import Message, Scope, Send

from proxy_cookie.core.cookie_rewriter import CookieRewriter
from proxy_cookie.core.cookies import CookieParseError, parse_set_cookie
from proxy_cookie.core.errors import CapabilityNotSupported
from proxy_cookie.core.metrics import COOKIES_DROPPED, COOKIES_REWRITTEN, RESPONSES_INTERCEPTED

START = "http.response.start"
BODY = "http.response.body"
BODY_MESSAGES = {BODY, "http.response.pathsend", "http.response.zerocopysendfile"}


class ResponseInterceptor:
    def __init__(
        self,
        send: Send,
        rewriter: CookieRewriter,
        scope: Optional[Scope] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.send = send
        self.rewriter = rewriter
        self.logger = logger or logging.getLogger(__name__)
        self.extensions = frozenset((scope or {}).get("extensions") or {})
        self.committed = False

    def supports(self, message_type: str) -> bool:
        return message_type in self.extensions

    async def __call__(self, message: Message) -> None:
        message_type = message["type"]

        if message_type == START:
            if self.committed:
                self.logger.warning(f"Superfluous {START} (status {message.get('status')}) suppressed")
                return
            await self._commit(message)
            return

        is_extension = message_type.startswith("http.response.") and message_type != BODY
        if is_extension and not self.supports(message_type):
            raise CapabilityNotSupported(message_type)

        if message_type in BODY_MESSAGES and not self.committed:
            self.logger.debug("Body sent before response start; committing default 200")
            await self._commit({"type": START, "status": 200, "headers": []})

        await self.send(message)

    async def _commit(self, message: Message) -> None:
        self.committed = True
        RESPONSES_INTERCEPTED.inc()

        headers = []
        raw_cookies = []
        for name, value in message.get("headers", []):
            if name.lower() == b"set-cookie":
                raw_cookies.append(value.decode("latin-1"))
            else:
                headers.append((name, value))

        for raw in raw_cookies:
            try:
                cookie = parse_set_cookie(raw)
            except CookieParseError as e:
                COOKIES_DROPPED.inc()
                self.logger.warning(f"Dropping unparseable Set-Cookie header: {e}")
                continue
            rendered = self.rewriter.transform(cookie).render()
            headers.append((b"set-cookie", rendered.encode("latin-1")))
            COOKIES_REWRITTEN.inc()
            self.logger.debug(f"Set-Cookie rewritten: {raw!r} -> {rendered!r}")

        await self.send({**message, "headers": headers})
