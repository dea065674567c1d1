import logging
from typing import Any, Optional
from starlette.types import ASGIApp, Scope, Receive, Send

from proxy_cookie.core.cookie_rewriter import CookieRewriter
from proxy_cookie.core.response_interceptor import ResponseInterceptor
from proxy_cookie.core.rewrite_chain import DEFAULT_TIMEOUT


class ProxyCookieMiddleware:
    """Rewrite Path and Domain of every cookie the wrapped app sets."""

    def __init__(
        self,
        app: ASGIApp,
        rewriter: Optional[CookieRewriter] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.app = app
        self.rewriter = rewriter or CookieRewriter()
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_config(
        cls,
        app: ASGIApp,
        config: Optional[dict[str, Any]],
        timeout: float = DEFAULT_TIMEOUT,
        logger: Optional[logging.Logger] = None,
    ) -> "ProxyCookieMiddleware":
        return cls(app, CookieRewriter.from_config(config, timeout=timeout), logger=logger)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        interceptor = ResponseInterceptor(send, self.rewriter, scope=scope, logger=self.logger)
        await self.app(scope, receive, interceptor)
