from starlette.types import ASGIApp, Scope, Receive, Send

ADMIN_PREFIX = "/__"


class MountAdminFirst:
    def __init__(self, admin_app: ASGIApp, main_app: ASGIApp, prefix: str = ADMIN_PREFIX) -> None:
        self.admin_app = admin_app
        self.main_app = main_app
        self.prefix = prefix

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        # admin paths bypass the cookie rewrite stack
        if scope["type"] == "http" and scope["path"].startswith(self.prefix):
            await self.admin_app(scope, receive, send)
        else:
            await self.main_app(scope, receive, send)
