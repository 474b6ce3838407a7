"""
Structured logging for the Apotek Alpro BPT portal.
Call setup_logging() once at startup (app.py does this unless
PORTAL_SKIP_LOGGING_SETUP=true).

Console: colored one-liners in dev, JSON lines on Railway / PORTAL_JSON_LOGS.
File:    <DATA_DIR>/logs/portal.log, always JSON, 5 MB x 5.
"""
import json
import logging
import logging.handlers
import os
from datetime import datetime, timezone

# Keys passed via extra={...} that are worth keeping in JSON output.
EXTRA_FIELDS = ("route", "method", "status", "duration_ms", "user",
                "login_type", "frame", "attempt", "tab", "strategy")

QUIET_LOGGERS = ("urllib3", "werkzeug", "requests")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RequestContextFilter(logging.Filter):
    """Stamps the logged-in portal user on records emitted inside a request."""

    def filter(self, record):
        if hasattr(record, "user"):
            return True
        try:
            from flask import has_request_context, session
        except ImportError:
            return True
        if has_request_context():
            user = session.get("user") or {}
            if user.get("displayName"):
                record.user = user["displayName"]
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line for log shipping."""
    def format(self, record):
        entry = {
            "ts": _utc_now().isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "module": record.module,
            "func": record.funcName,
            "line": record.lineno,
        }
        entry.update({k: getattr(record, k) for k in EXTRA_FIELDS if hasattr(record, k)})
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """Readable console format with color; frame/tab context appended."""
    COLORS = {
        "DEBUG": "\033[36m", "INFO": "\033[32m",
        "WARNING": "\033[33m", "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record):
        color = self.COLORS.get(record.levelname, "")
        ts = _utc_now().strftime("%H:%M:%S")
        ctx = " ".join(f"{k}={getattr(record, k)}" for k in ("frame", "tab", "user")
                       if hasattr(record, k))
        line = f"{color}{ts} [{record.levelname[0]}] {record.name}: {record.getMessage()}"
        if ctx:
            line += f"  ({ctx})"
        line += self.RESET
        if record.exc_info and record.exc_info[0]:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _file_handler(log_dir):
    """Rotating JSON file under log_dir, or None when the dir is not writable."""
    try:
        os.makedirs(log_dir, exist_ok=True)
        fh = logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, "portal.log"), maxBytes=5_000_000, backupCount=5)
    except OSError as e:
        logging.getLogger("portal").warning("File logging disabled (%s): %s", log_dir, e)
        return None
    fh.setFormatter(JSONFormatter())
    return fh


def setup_logging(level=None, json_logs=None, log_dir=None):
    """
    Configure logging for the portal.

    Args:
        level: Override log level (default: LOG_LEVEL env or INFO)
        json_logs: Force JSON console output (default: on when PORTAL_JSON_LOGS
                   or RAILWAY_ENVIRONMENT is set)
        log_dir: Directory for portal.log (default: src.core.paths.LOG_DIR)
    """
    level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    if json_logs is None:
        json_logs = bool(os.environ.get("PORTAL_JSON_LOGS")
                         or os.environ.get("RAILWAY_ENVIRONMENT"))
    if log_dir is None:
        from src.core.paths import LOG_DIR
        log_dir = LOG_DIR

    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))
    root.handlers.clear()

    context = RequestContextFilter()
    console = logging.StreamHandler()
    console.setFormatter(JSONFormatter() if json_logs else HumanFormatter())
    console.addFilter(context)
    root.addHandler(console)

    fh = _file_handler(log_dir)
    if fh is not None:
        fh.addFilter(context)
        root.addHandler(fh)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("portal").info("Logging initialized (%s, %s)", level,
                                     "json" if json_logs else "human")
