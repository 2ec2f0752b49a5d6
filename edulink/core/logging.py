"""Structured JSON logging with request/payment context fields."""

import logging
import sys
from contextvars import ContextVar

from pythonjsonlogger.json import JsonFormatter

from edulink.core.config import settings


request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")
payment_reference_ctx: ContextVar[str] = ContextVar("payment_reference", default="")


class ContextFilter(logging.Filter):
    """Inject correlation identifiers into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_ctx.get()
        record.payment_reference = payment_reference_ctx.get()
        return True


def configure_logging() -> None:
    """Configure the root logger once per process."""

    handler = logging.StreamHandler(sys.stdout)
    context_filter = ContextFilter()
    handler.addFilter(context_filter)
    formatter = JsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(request_id)s %(payment_reference)s %(message)s"
    )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.LOG_LEVEL)
