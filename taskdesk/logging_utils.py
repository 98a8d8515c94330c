import logging
import sys
from contextvars import ContextVar

# Set per request by the request-context middleware; "-" outside a request
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class RequestIdFilter(logging.Filter):
    """Stamp every record with the current request id."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True


def setup_logging(level: str = "INFO") -> None:
    """Configure logging as: time level logger [request_id] message k=v ...

    When handlers already exist (uvicorn, pytest) only the level and the
    request id filter are applied to them.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())
    # SQL echo is far too chatty at INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    if root.handlers:
        for handler in root.handlers:
            if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
                handler.addFilter(RequestIdFilter())
        return

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    root.addHandler(handler)
