import json
import sys
from ..utils.clock import utcnow


_LEVELS = {"debug": 10, "info": 20, "warning": 30, "error": 40}
_threshold = _LEVELS["info"]


def set_log_level(level: str) -> None:
    global _threshold
    _threshold = _LEVELS.get((level or "info").lower(), _LEVELS["info"])


def log_event(level: str, event: str, **fields) -> None:
    lvl = level.lower()
    if _LEVELS.get(lvl, _LEVELS["info"]) < _threshold:
        return
    payload = {
        "ts": utcnow().isoformat() + "Z",
        "level": lvl,
        "event": event,
    }
    payload.update(fields or {})
    sys.stdout.write(json.dumps(payload, ensure_ascii=False, default=str) + "\n")
