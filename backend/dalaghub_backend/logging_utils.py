import json
import logging
from datetime import datetime, timezone


# Extra fields copied onto the JSON line when a log call passes them.
EXTRA_FIELDS = (
    "request_id",
    "user_id",
    "client_ip",
    "method",
    "path",
    "view",
    "status_code",
    "duration_ms",
    "event",
    "product_id",
    "storage_key",
)


class JsonFormatter(logging.Formatter):
    """One JSON object per line for request and store logs."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in EXTRA_FIELDS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)
