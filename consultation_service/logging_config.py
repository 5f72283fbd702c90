"""Structured JSON logging for the service process."""

import logging
import sys

from pythonjsonlogger.json import JsonFormatter


class ServiceNameFilter(logging.Filter):
    """Stamp the service name on every log record."""

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = self.service_name
        return True


def configure_logging(service_name: str, level: str = "INFO") -> None:
    """Configure the root logger once per process."""

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(ServiceNameFilter(service_name))
    handler.setFormatter(JsonFormatter("%(asctime)s %(levelname)s %(service_name)s %(name)s %(message)s"))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level.upper())
