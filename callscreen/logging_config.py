# file: callscreen/logging_config.py
"""
Logging configuration.

callscreen uses standard library logging. Screening decisions and recovered
read failures are logged with structured fields passed via `extra=`:

- `e164`, `allowed`, `matched_by`: one per evaluated caller (DEBUG)
- `caller`, `allowed`: a caller silenced because it could not be parsed (INFO)
- `source`: a data source that refused a read or held a bad entry (INFO)

`JsonFormatter` emits those fields as JSON keys for ingestion by a host
process; the plain text format appends them as `key=value` pairs.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

SCREENING_FIELDS = ("e164", "caller", "allowed", "matched_by", "source")

# Everything a bare LogRecord carries; other attributes arrived via `extra=`.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))) | {
    "message",
    "asctime",
}


def record_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Return the `extra=` fields attached to `record`, screening fields first."""

    fields = {k: getattr(record, k) for k in SCREENING_FIELDS if hasattr(record, k)}
    for k, v in record.__dict__.items():
        if k in _RECORD_ATTRS or k in fields or k.startswith("_"):
            continue
        fields[k] = v
    return fields


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(record_fields(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str)


class FieldsFormatter(logging.Formatter):
    """Plain text lines with the screening fields appended."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = {k: v for k, v in record_fields(record).items() if k in SCREENING_FIELDS}
        if not fields:
            return line
        return line + " " + " ".join(f"{k}={v}" for k, v in fields.items())


def configure_logging(*, level: str = "INFO", json_logging: bool = False) -> None:
    """
    Configure root logging for CLI use.

    Logs go to stderr; stdout is reserved for screening output.
    """

    root = logging.getLogger()
    root.setLevel(level.upper())

    # Replace existing handlers to avoid duplicate logs when called twice.
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter() if json_logging else FieldsFormatter())
    root.addHandler(handler)
