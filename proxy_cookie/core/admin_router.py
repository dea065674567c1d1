import logging
from starlette.types import Scope, Receive, Send
from starlette.responses import PlainTextResponse, JSONResponse, Response
from proxy_cookie.core.metrics import render_prometheus_metrics
from proxy_cookie.core.proxy_cookie_middleware import ProxyCookieMiddleware

logger = logging.getLogger(__name__)


class AdminRouter:
    def __init__(self, middleware: ProxyCookieMiddleware) -> None:
        self.middleware = middleware

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        path = scope.get("path", "")
        method = scope.get("method", "GET")
        if method not in ("GET", "HEAD"):
            await PlainTextResponse("Method Not Allowed", status_code=405)(scope, receive, send)
        elif path == "/__health":
            await self.health(scope, receive, send)
        elif path == "/__rules":
            await self.rules(scope, receive, send)
        elif path == "/__metrics":
            await self.metrics(scope, receive, send)
        else:
            logger.info(f"Unknown admin path {path}")
            await PlainTextResponse("Not Found", status_code=404)(scope, receive, send)

    async def health(self, scope: Scope, receive: Receive, send: Send) -> None:
        await PlainTextResponse("OK")(scope, receive, send)

    async def rules(self, scope: Scope, receive: Receive, send: Send) -> None:
        await JSONResponse(self.middleware.rewriter.describe())(scope, receive, send)

    async def metrics(self, scope: Scope, receive: Receive, send: Send) -> None:
        data, content_type = render_prometheus_metrics()
        await Response(content=data, media_type=content_type)(scope, receive, send)
