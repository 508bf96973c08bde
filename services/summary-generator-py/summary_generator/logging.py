import base64
import json
import os
import sys
import time
import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Optional, TextIO

from pydantic import BaseModel

LEVELS = {"debug": 10, "info": 20, "warn": 30, "warning": 30, "error": 40}

DEFAULT_REDACT_KEYS = frozenset({"api_key", "authorization", "password", "secret", "token", "cookie", "set-cookie"})
# llm_api_key, access_token, client_secret, ...
_REDACT_SUFFIXES = ("_key", "_token", "_secret", "_password")
REDACTED = "[REDACTED]"


def to_jsonable(o: Any) -> Any:
    """``json.dumps`` default hook for the values this service logs."""
    if isinstance(o, BaseModel):
        return o.model_dump(mode="json")
    if isinstance(o, Enum):
        return o.value
    if isinstance(o, (uuid.UUID, Decimal)):
        return str(o)
    if isinstance(o, (datetime, date)):
        return o.isoformat()
    if isinstance(o, (bytes, bytearray)):
        raw = bytes(o)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            return {"__b64__": base64.b64encode(raw).decode("ascii"), "size": len(raw)}
    if isinstance(o, (set, frozenset)):
        return sorted(o, key=str)
    if isinstance(o, BaseException):
        return {"type": type(o).__name__, "message": str(o)}
    return repr(o)


def is_secret_key(key: str, redact_keys: FrozenSet[str] = DEFAULT_REDACT_KEYS) -> bool:
    k = key.lower()
    return k in redact_keys or k.endswith(_REDACT_SUFFIXES)


def redact(value: Any, redact_keys: FrozenSet[str] = DEFAULT_REDACT_KEYS) -> Any:
    """Copy of ``value`` with secret-looking mapping keys masked at any depth."""
    if isinstance(value, dict):
        return {
            k: (REDACTED if isinstance(k, str) and is_secret_key(k, redact_keys) else redact(v, redact_keys))
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact(v, redact_keys) for v in value]
    return value


class JsonLogger:
    """JSON-lines event logger.

    One object per line: ``ts`` (epoch ms), ``event``, ``level``, ``pid`` and
    any keyword fields. Context attached with :meth:`bind` is merged into
    every record emitted by the child logger. Secret-looking keys are masked
    before anything is written.
    """

    def __init__(
        self,
        level: str = "info",
        stream: Optional[TextIO] = None,
        context: Optional[Dict[str, Any]] = None,
        redact_keys: Iterable[str] = DEFAULT_REDACT_KEYS,
    ) -> None:
        self.level_name = level.lower()
        self.level = LEVELS.get(self.level_name, 20)
        self._stream = stream
        self._context: Dict[str, Any] = dict(context or {})
        self._redact_keys = frozenset(k.lower() for k in redact_keys)
        self._pid = os.getpid()

    @property
    def stream(self) -> TextIO:
        # resolved lazily so pytest's capsys swap of sys.stdout is honoured
        return self._stream if self._stream is not None else sys.stdout

    def bind(self, **fields: Any) -> "JsonLogger":
        ctx = dict(self._context)
        ctx.update(fields)
        return JsonLogger(self.level_name, stream=self._stream, context=ctx, redact_keys=self._redact_keys)

    def is_enabled_for(self, level_name: str) -> bool:
        return LEVELS.get(level_name, 20) >= self.level

    def _emit(self, level_name: str, event: str, **fields: Any) -> None:
        if not self.is_enabled_for(level_name):
            return
        rec: Dict[str, Any] = {
            "ts": int(time.time() * 1000),
            "event": event,
            "level": level_name.upper() if level_name != "warning" else "WARN",
            "pid": self._pid,
        }
        rec.update(self._context)
        rec.update(fields)
        rec = redact(rec, self._redact_keys)

        out = self.stream
        try:
            out.write(json.dumps(rec, default=to_jsonable, ensure_ascii=False) + "\n")
            out.flush()
        except (TypeError, ValueError, OSError) as e:
            # never fail a request because a log line could not be written
            fallback = {
                "ts": rec.get("ts"),
                "event": "logger.error",
                "level": "ERROR",
                "orig_event": event,
                "orig_level": level_name.upper(),
                "error": str(e),
                "data_repr": repr(rec),
            }
            try:
                out.write(json.dumps(fallback, default=to_jsonable, ensure_ascii=False) + "\n")
                out.flush()
            except OSError:
                pass

    def debug(self, event: str, **fields: Any) -> None:
        self._emit("debug", event, **fields)

    def info(self, event: str, **fields: Any) -> None:
        self._emit("info", event, **fields)

    def warn(self, event: str, **fields: Any) -> None:
        self._emit("warn", event, **fields)

    # compatibility with std logging API
    def warning(self, event: str, **fields: Any) -> None:
        self._emit("warn", event, **fields)

    def error(self, event: str, **fields: Any) -> None:
        self._emit("error", event, **fields)


def create_logger(level: str = "info", **context: Any) -> JsonLogger:
    return JsonLogger(level, context=context)


__all__ = ["JsonLogger", "create_logger", "redact", "to_jsonable", "LEVELS"]
