import logging
from logging.config import dictConfig
from typing import Literal

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]
LogFormat = Literal["json", "text"]

JSON_FORMATTER_CLASS = "pythonjsonlogger.json.JsonFormatter"
REQUEST_ID_FILTER = "propertyhub.core.request_context.RequestIdFilter"


def configure_logging(level: LogLevel = "INFO", log_format: LogFormat = "json") -> None:
    """Route every logger through one console handler.

    ``json`` emits one object per line via python-json-logger; ``text`` is the
    human-readable pipe format used in local development. Both carry the
    current request id.
    """
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {"request_id": {"()": REQUEST_ID_FILTER}},
            "formatters": {
                "text": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s",
                },
                "json": {
                    "()": JSON_FORMATTER_CLASS,
                    "fmt": "%(asctime)s %(levelname)s %(name)s %(request_id)s %(message)s",
                    "rename_fields": {"levelname": "level", "asctime": "timestamp"},
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": log_format,
                    "filters": ["request_id"],
                }
            },
            "root": {"handlers": ["console"], "level": level.upper()},
        }
    )

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).handlers = []
