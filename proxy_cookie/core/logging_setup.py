import logging
from proxy_cookie.core.trace import trace_id_var


class TraceLogFilter(logging.Filter):
    def filter(self, record):
        record.trace_id = trace_id_var.get() or "-"
        return True


def configure_logging(level: str = "WARNING"):
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] [trace_id=%(trace_id)s] %(name)s: %(message)s"
    )
    # handler filters also see records propagated from child loggers
    for handler in logging.getLogger().handlers:
        handler.addFilter(TraceLogFilter())
    logging.getLogger("proxy_cookie").setLevel(level.upper())
