# src/libs/price-common/price_common/logging_utils.py
import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Optional, Union

from pythonjsonlogger import jsonlogger

from .config import SERVICE_NAME, ENVIRONMENT, LOG_LEVEL

# Correlation id of the message currently being handled.
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="<not-set>")

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s %(service)s %(environment)s %(correlation_id)s"
RENAMED_FIELDS = {"asctime": "timestamp", "levelname": "level", "name": "logger"}


class CorrelationIdFilter(logging.Filter):
    """Stamps the current correlation id and the service identity onto each record."""

    def __init__(self, service: str = SERVICE_NAME, environment: str = ENVIRONMENT):
        super().__init__()
        self.service = service
        self.environment = environment

    def filter(self, record):
        record.correlation_id = correlation_id_var.get()
        record.service = self.service
        record.environment = self.environment
        return True


def setup_logging(level: Optional[Union[int, str]] = None):
    """
    Sends every logger in the process through a single stdout handler that
    writes one JSON document per record. Calling it again replaces the
    handler instead of adding a second one.
    """
    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)

    root_logger.setLevel(level or LOG_LEVEL)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(jsonlogger.JsonFormatter(LOG_FORMAT, rename_fields=RENAMED_FIELDS))
    handler.addFilter(CorrelationIdFilter())
    root_logger.addHandler(handler)


def generate_correlation_id(prefix: str) -> str:
    """Returns e.g. 'PRC:3f0c...'; the prefix names the component that minted the id."""
    return f"{prefix}:{uuid.uuid4()}"
