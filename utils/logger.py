# utils/logger.py
"""
Minimaler Logger: stdout, Level-Filter über LOG_LEVEL.

LOG_FORMAT=json schreibt eine JSON-Zeile pro Eintrag. Die Komponente wird
aus dem führenden "[Prefix]" der Nachricht gelesen.
"""
import json
import re
from datetime import datetime, timezone
from config import LOG_LEVEL, LOG_FORMAT

LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]

_COMPONENT_RE = re.compile(r"^\[([^\]]+)\]\s*")


def _should_log(level: str) -> bool:
    try:
        cur = LEVELS.index(LOG_LEVEL.upper())
        want = LEVELS.index(level)
        return want >= cur
    except ValueError:
        return True


def _format(level: str, msg: str, ts: str) -> str:
    if LOG_FORMAT != "json":
        return f"[{ts}] [{level}] {msg}"
    match = _COMPONENT_RE.match(msg)
    return json.dumps({
        "timestamp": ts,
        "service": "staged-thinking",
        "level": level,
        "component": match.group(1) if match else None,
        "message": msg[match.end():] if match else msg,
    }, ensure_ascii=False)


def _log(level: str, msg: str):
    if not _should_log(level):
        return
    ts = datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")
    print(_format(level, msg, ts), flush=True)


def log_debug(msg: str):
    _log("DEBUG", msg)


def log_info(msg: str):
    _log("INFO", msg)


def log_warning(msg: str):
    _log("WARNING", msg)


def log_error(msg: str):
    _log("ERROR", msg)