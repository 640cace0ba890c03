import logging
import re
from typing import Any, Optional

PACKAGE_LOGGER = "lufthansa_refdata"

LOG_EXTRA_FIELDS = (
    "resource",
    "method",
    "url",
    "status",
    "duration_ms",
    "rel",
    "limiter",
    "token_type",
    "expires_in_s",
    "error_type",
)

_BEARER = re.compile(r"(?i)\b(bearer)\s+[^\s\"&]+")


class LogfmtFormatter(logging.Formatter):
    """logfmt lines: level, logger, event, then whichever known extras are set."""

    def format(self, record: logging.LogRecord) -> str:
        parts = [
            f"level={record.levelname.lower()}",
            f"logger={record.name}",
        ]
        msg = record.getMessage()
        if msg:
            parts.append(f"event={self._fmt_val(msg)}")

        parts.extend(
            f"{key}={self._fmt_val(val)}"
            for key in LOG_EXTRA_FIELDS
            if (val := getattr(record, key, None)) is not None
        )

        if record.exc_info and record.exc_info[0] is not None:
            parts.append(f"exc_type={record.exc_info[0].__name__}")
        return " ".join(parts)

    @staticmethod
    def _fmt_val(val: Any) -> str:
        if isinstance(val, (bool, int, float)):
            return str(val)
        s = _BEARER.sub(r"\1 ***", str(val)).replace("\n", "\\n")
        if any(c in s for c in ' ="'):
            s = '"' + s.replace('"', '\\"') + '"'
        return s


def setup_logging(
    level: str = "INFO", *, logger: Optional[logging.Logger] = None
) -> logging.Logger:
    """
    Send this package's logs to stderr as logfmt.

    Configures the package logger (not the root), so an application's own
    logging setup is left alone. Calling it again replaces the handler.
    """
    target = logger or logging.getLogger(PACKAGE_LOGGER)
    for h in list(target.handlers):
        if isinstance(h.formatter, LogfmtFormatter):
            target.removeHandler(h)

    handler = logging.StreamHandler()
    handler.setFormatter(LogfmtFormatter())
    target.addHandler(handler)
    target.setLevel(getattr(logging, level.upper(), logging.INFO))
    return target


__all__ = ["setup_logging", "LogfmtFormatter", "LOG_EXTRA_FIELDS", "PACKAGE_LOGGER"]
