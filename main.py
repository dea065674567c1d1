import logging
import uvicorn
from dotenv import load_dotenv
from starlette.types import ASGIApp
from uvicorn.importer import import_from_string
from proxy_cookie.config.settings import Settings, load_settings
from proxy_cookie.core.proxy_cookie_middleware import ProxyCookieMiddleware
from proxy_cookie.core.trace import TraceMiddleware
from proxy_cookie.core.logging_setup import configure_logging
from proxy_cookie.core.admin_router import AdminRouter
from proxy_cookie.core.mount_admin_first import MountAdminFirst

logger = logging.getLogger("proxy_cookie.main")


def build_app(upstream: ASGIApp, settings: Settings) -> ASGIApp:
    # Cookie rewriting wraps the upstream app directly
    cookie_app = ProxyCookieMiddleware.from_config(
        upstream, settings.rules, timeout=settings.regex_timeout
    )
    app = TraceMiddleware(cookie_app)

    if settings.admin_enabled:
        # Admin gets the middleware itself to report the active rules
        app = MountAdminFirst(AdminRouter(cookie_app), app)
    return app


def main() -> None:
    # Load environment variables from .env file
    load_dotenv()
    settings = load_settings()
    configure_logging(settings.log_level)

    if not settings.upstream_app:
        raise SystemExit("UPSTREAM_APP must name the ASGI app to wrap, e.g. 'myservice.app:app'")

    upstream = import_from_string(settings.upstream_app)
    logger.info(f"Wrapping {settings.upstream_app} with cookie rewriting")
    uvicorn.run(build_app(upstream, settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
