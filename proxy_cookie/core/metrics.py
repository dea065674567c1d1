from prometheus_client import (
    Counter,
    CollectorRegistry,
    generate_latest,
    CONTENT_TYPE_LATEST
)

registry = CollectorRegistry()

RESPONSES_INTERCEPTED = Counter(
    "proxy_cookie_responses_total",
    "Number of response headers committed through the cookie interceptor",
    registry=registry
)

COOKIES_REWRITTEN = Counter(
    "proxy_cookie_cookies_rewritten_total",
    "Number of Set-Cookie headers rewritten and forwarded",
    registry=registry
)

COOKIES_DROPPED = Counter(
    "proxy_cookie_cookies_dropped_total",
    "Number of Set-Cookie headers dropped because they could not be parsed",
    registry=registry
)

REGEX_TIMEOUTS = Counter(
    "proxy_cookie_regex_timeouts_total",
    "Number of rewrite rules skipped because matching exceeded its time budget",
    ["chain"],
    registry=registry
)


def render_prometheus_metrics() -> tuple[bytes, str]:
    return generate_latest(registry), CONTENT_TYPE_LATEST
