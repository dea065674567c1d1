import uuid
import contextvars
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Scope, Receive, Send

trace_id_var = contextvars.ContextVar("trace_id", default=None)


class TraceMiddleware:
    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        trace_id = Headers(scope=scope).get("x-trace-id") or str(uuid.uuid4())
        token = trace_id_var.set(trace_id)

        async def send_with_trace_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = message.setdefault("headers", [])
                headers.append((b"x-trace-id", trace_id.encode("latin-1")))
            await send(message)

        try:
            await self.app(scope, receive, send_with_trace_id)
        finally:
            trace_id_var.reset(token)
