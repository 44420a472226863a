"""Tagged console logging for spirosynth.

Every module logs through log_event() so engine, audio and UI output share
one "[LEVEL][Tag] message | key=value" shape. Paths that can fire once per
sub-step (audio recovery, ramp failures) go through log_throttled() so a dead
output device cannot flood the console at the tick rate.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Any

LOGGER_NAME = "spirosynth"
DEFAULT_TAG = "Engine"

_logger = logging.getLogger(LOGGER_NAME)
if not _logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s][%(tag)s] %(message)s"))
    _logger.addHandler(handler)
    _logger.setLevel(logging.INFO)


class _TagAdapter(logging.LoggerAdapter):
    def process(self, msg: Any, kwargs: dict[str, Any]):
        kwargs.setdefault("extra", {})["tag"] = kwargs.pop("tag", DEFAULT_TAG)
        return msg, kwargs


_adapter = _TagAdapter(_logger, {})

# key -> [last emitted (monotonic), suppressed count]
_throttle_state: dict[str, list] = {}
_throttle_lock = threading.Lock()


def _format_field(value: Any) -> str:
    # Engine fields are mostly coordinates and audio levels
    if isinstance(value, float):
        return f"{value:.4g}"
    if isinstance(value, tuple) and all(isinstance(v, (int, float)) for v in value):
        return "(" + ",".join(_format_field(float(v)) for v in value) + ")"
    return str(value)


def _level_value(level: str) -> int:
    name = (level or "INFO").upper()
    if name == "WARN":
        name = "WARNING"
    return getattr(logging, name, logging.INFO)


def format_message(message: str, **fields: Any) -> str:
    if not fields:
        return message
    extras = " ".join(f"{k}={_format_field(v)}" for k, v in fields.items())
    return f"{message} | {extras}"


def log_event(level: str, tag: str, message: str, **fields: Any) -> None:
    """Log a message with level+tag, appending key=value fields when provided."""
    _adapter.log(_level_value(level), format_message(message, **fields), tag=tag)


def log_throttled(key: str, interval_s: float, level: str, tag: str, message: str,
                  **fields: Any) -> bool:
    """log_event at most once per interval_s for `key`.

    The next emitted line carries suppressed=N for the calls dropped in
    between. Returns True when the line was emitted.
    """
    now = time.monotonic()
    with _throttle_lock:
        entry = _throttle_state.get(key)
        if entry is not None and now - entry[0] < interval_s:
            entry[1] += 1
            return False
        suppressed = entry[1] if entry is not None else 0
        _throttle_state[key] = [now, 0]
    if suppressed:
        fields["suppressed"] = suppressed
    log_event(level, tag, message, **fields)
    return True


def reset_throttle(key: str | None = None) -> None:
    with _throttle_lock:
        if key is None:
            _throttle_state.clear()
        else:
            _throttle_state.pop(key, None)


def set_log_level(level: str) -> None:
    """Set global log level (DEBUG/INFO/WARNING/ERROR)."""
    _logger.setLevel(_level_value(level))


def get_log_level() -> str:
    return logging.getLevelName(_logger.level)
