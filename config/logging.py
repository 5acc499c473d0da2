import json
import logging
import random
from datetime import datetime, timezone

# Events that are never sampled away: they are the audit trail for orders.
AUDIT_EVENTS = ("order.placed", "order.status_changed")

_RESERVED = frozenset(
    (
        "msg",
        "args",
        "levelname",
        "levelno",
        "name",
        "created",
        "msecs",
        "relativeCreated",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "exc_info",
        "exc_text",
        "stack_info",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "message",
    )
)


class JsonFormatter(logging.Formatter):
    """Minimal JSON formatter for production logs.

    - Merges base fields (time, level, name, message) with any attributes
      provided via `extra` on the log record (e.g., event, cart_id, order_id).
    - Exceptions are rendered under `exc_info` as a formatted traceback.
    - Dates are ISO-8601 UTC.
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key in _RESERVED or key.startswith("_"):
                continue
            try:
                json.dumps(value)
                payload.setdefault(key, value)
            except (TypeError, ValueError):
                payload.setdefault(key, str(value))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


class SamplingFilter(logging.Filter):
    """Probabilistically drop logs to reduce noise while keeping signal.

    - `rate`: float in [0.0, 1.0]; fraction of matching records to allow.
    - `levels`: level names to which sampling applies (e.g., ["INFO"]).
    - `allow_events`: event names that are never sampled, matched against the
      record's `event` extra or its message.
    """

    def __init__(self, rate: float = 1.0, levels: list[str] | None = None, allow_events: list[str] | None = None):
        super().__init__()
        try:
            self.rate = min(max(float(rate), 0.0), 1.0)
        except (TypeError, ValueError):
            self.rate = 1.0
        self.levels = set(levels or ["INFO"])
        self.allow_events = set(allow_events or [])

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if record.levelname not in self.levels:
            return True
        event = getattr(record, "event", None) or getattr(record, "msg", "")
        if event in self.allow_events:
            return True
        if self.rate >= 1.0:
            return True
        if self.rate <= 0.0:
            return False
        return random.random() < self.rate


def build_logging(*, json_output: bool = False, level: str = "INFO", orders_sample_rate: float = 1.0) -> dict:
    """Return a LOGGING dict wiring the `smartcart.*` loggers.

    Orders INFO logs pass through a `SamplingFilter` that always keeps
    `AUDIT_EVENTS`.
    """

    formatter = "json" if json_output else "plain"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": "config.logging.JsonFormatter"},
            "plain": {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"},
        },
        "filters": {
            "orders_info_sample": {
                "()": "config.logging.SamplingFilter",
                "rate": orders_sample_rate,
                "levels": ["INFO"],
                "allow_events": list(AUDIT_EVENTS),
            },
        },
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": formatter},
            "orders_console": {
                "class": "logging.StreamHandler",
                "formatter": formatter,
                "filters": ["orders_info_sample"],
            },
        },
        "root": {"handlers": ["console"], "level": level},
        "loggers": {
            "smartcart.cart": {"handlers": ["console"], "level": level, "propagate": False},
            "smartcart.catalog": {"handlers": ["console"], "level": level, "propagate": False},
            "smartcart.orders": {"handlers": ["orders_console"], "level": level, "propagate": False},
        },
    }
