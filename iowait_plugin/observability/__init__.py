"""Observability utilities: logging setup and request correlation filter."""

from __future__ import annotations

import logging

from ..utils.correlation import get_request_id


class RequestIdFilter(logging.Filter):  # pylint: disable=too-few-public-methods
    """Attach the current request correlation id to every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "req_id", None):
            record.req_id = get_request_id() or "-"
        return True


def setup_logging(level: str = "INFO") -> None:
    """Configure application logging.

    Parameters
    ----------
    level: str
        Logging level name (e.g., "DEBUG", "INFO"). Defaults to "INFO".

    Behavior
    --------
    - Initializes Python's logging with the requested level.
    - Installs a filter that stamps records with the request correlation id.
    - Keeps uvicorn's access log quiet; requests are logged by the app itself.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format=("%(asctime)s %(levelname)s %(name)s [%(req_id)s] - %(message)s"),
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
            handler.addFilter(RequestIdFilter())

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
