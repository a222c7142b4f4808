import logging
from contextvars import ContextVar

LOG_FORMAT = '%(asctime)s - %(levelname)s - [%(request_id)s] [%(site_url)s] - %(name)s - %(message)s'

# set by the request middleware and by the read-only operation respectively
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")
site_url_var: ContextVar[str] = ContextVar("site_url", default="-")

class RequestContextFilter(logging.Filter):
    """Stamps each record with the request id and the site being changed."""
    def filter(self, record):
        record.request_id = request_id_var.get()
        record.site_url = site_url_var.get()
        return True

def setup_logging(level: str = "INFO") -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestContextFilter())
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level.upper())
    # office365 logs every request at DEBUG; keep it to warnings unless asked
    if root_logger.level > logging.DEBUG:
        logging.getLogger("office365").setLevel(logging.WARNING)
    for name in ("uvicorn", "uvicorn.error"):
        logging.getLogger(name).propagate = True
    return handler
