from __future__ import annotations
import os
import logging
from pathlib import Path
import contextvars

# ==== Paths & env ====
BASE_DIR = Path(__file__).resolve().parent.parent
LOG_DIR = Path(os.getenv("LOG_DIR", BASE_DIR / "logs"))
LOG_DIR.mkdir(parents=True, exist_ok=True)

APP_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DJANGO_LEVEL = os.getenv("DJANGO_LOG_LEVEL", "INFO").upper()
SQL_DEBUG = os.getenv("SQL_LOG", "0") == "1"

# ==== Correlation / Request ID ====
request_id_ctx: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="-")


class RequestIDFilter(logging.Filter):
    """Attach the current request id (if any) to every record."""
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_ctx.get("-")
        return True


SENSITIVE_KEYS = {
    "password", "access", "refresh", "token", "authorization", "secret",
    "api_key", "apikey", "cookie", "cookies",
}
# answer_text is free-form user input about their emotional state
SCRUB_FIELDS = {"body", "payload", "params", "data", "headers", "query", "cookies", "answer_text"}


def scrub_for_log(obj, depth=0):
    if depth > 3:
        return "<deep>"
    if isinstance(obj, dict):
        out = {}
        for k, v in obj.items():
            if str(k).lower() in SENSITIVE_KEYS:
                out[k] = "***"
            else:
                out[k] = scrub_for_log(v, depth + 1)
        return out
    if isinstance(obj, (list, tuple)):
        return [scrub_for_log(x, depth + 1) for x in list(obj)[:50]]
    return obj


class ScrubFilter(logging.Filter):
    """
    Masks sensitive keys in structured values passed through `extra={...}`
    (body, payload, params, data, headers, query, cookies) and in dict/tuple
    `record.args`. Free text answers are replaced by their length.
    """
    def filter(self, record: logging.LogRecord) -> bool:
        for f in SCRUB_FIELDS:
            if not hasattr(record, f):
                continue
            value = getattr(record, f)
            if f == "answer_text":
                setattr(record, f, f"<{len(value or '')} chars>")
            else:
                setattr(record, f, scrub_for_log(value))

        args = getattr(record, "args", None)
        if isinstance(args, dict):
            record.args = {k: scrub_for_log(v) for k, v in args.items()}
        elif isinstance(args, tuple):
            record.args = tuple(scrub_for_log(v) for v in args)
        return True


# ==== Formatters ====
VERBOSE_FMT = (
    "[%(asctime)s] [%(levelname)s] [%(name)s] "
    "[req=%(request_id)s] %(message)s"
)
SIMPLE_FMT = "%(levelname)s: %(message)s"
DATE_FMT = "%Y-%m-%d %H:%M:%S"

_APP_HANDLERS = ["console", "app_file", "error_file"]

# ==== LOGGING dict for Django ====
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,

    "filters": {
        "request_id": {"()": RequestIDFilter},
        "scrub": {"()": ScrubFilter},
    },

    "formatters": {
        "verbose": {
            "format": VERBOSE_FMT,
            "datefmt": DATE_FMT,
        },
        "simple": {
            "format": SIMPLE_FMT,
        },
    },

    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": APP_LEVEL,
            "formatter": "verbose",
            "filters": ["request_id", "scrub"],
        },
        "app_file": {
            "class": "logging.handlers.RotatingFileHandler",
            "level": APP_LEVEL,
            "formatter": "verbose",
            "filters": ["request_id", "scrub"],
            "filename": str(LOG_DIR / "app.log"),
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
            "encoding": "utf-8",
        },
        "error_file": {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "ERROR",
            "formatter": "verbose",
            "filters": ["request_id", "scrub"],
            "filename": str(LOG_DIR / "error.log"),
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
            "encoding": "utf-8",
        },
        # only attached when SQL_LOG=1
        "sql_file": {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "DEBUG",
            "formatter": "verbose",
            "filters": ["request_id"],
            "filename": str(LOG_DIR / "sql.log"),
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 3,
            "encoding": "utf-8",
        },
    },

    "loggers": {
        "trilhas": {
            "handlers": _APP_HANDLERS,
            "level": APP_LEVEL,
            "propagate": False,
        },
        "users": {
            "handlers": _APP_HANDLERS,
            "level": APP_LEVEL,
            "propagate": False,
        },
        "utils": {
            "handlers": _APP_HANDLERS,
            "level": APP_LEVEL,
            "propagate": False,
        },
        "django": {
            "handlers": _APP_HANDLERS,
            "level": DJANGO_LEVEL,
            "propagate": False,
        },
        # 5xx from Django
        "django.request": {
            "handlers": ["console", "error_file"],
            "level": "ERROR",
            "propagate": False,
        },
        "django.db.backends": {
            "handlers": (["sql_file", "console"] if SQL_DEBUG else []),
            "level": "DEBUG" if SQL_DEBUG else "WARNING",
            "propagate": False,
        },
        "": {
            "handlers": _APP_HANDLERS,
            "level": APP_LEVEL,
        },
    },
}
