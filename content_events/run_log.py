from __future__ import annotations

import json
import traceback
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TextIO


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _truncate(text: str, *, limit: int) -> str:
    s = str(text or "")
    if limit <= 0:
        return ""
    if len(s) <= limit:
        return s
    return s[: max(0, limit - 1)] + "…"


class RunLogger:
    """
    JSONL audit log for a single pipeline run.

    Each line is one JSON object with `ts`, `level`, `event` and `session_id`,
    plus `record_index` for per-record entries and `data` for extra fields.
    A logger without a path accepts calls and writes nothing.
    """

    def __init__(
        self,
        path: str | Path | None,
        *,
        overwrite: bool = True,
        session_id: str | None = None,
    ) -> None:
        self._path = Path(path) if path is not None else None
        self._overwrite = bool(overwrite)
        self._session_id = (session_id or "").strip() or uuid.uuid4().hex
        self._fp: TextIO | None = None

    @classmethod
    def open(
        cls,
        path: str | Path | None,
        *,
        overwrite: bool = True,
        session_id: str | None = None,
    ) -> "RunLogger":
        logger = cls(path, overwrite=overwrite, session_id=session_id)
        logger._ensure_open()
        return logger

    def close(self) -> None:
        if self._fp is not None:
            try:
                self._fp.flush()
            finally:
                self._fp.close()
            self._fp = None

    def __enter__(self) -> "RunLogger":
        self._ensure_open()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def info(self, event: str, *, record_index: int | None = None, **data: Any) -> None:
        self.log("INFO", event, record_index=record_index, **data)

    def warning(self, event: str, *, record_index: int | None = None, **data: Any) -> None:
        self.log("WARN", event, record_index=record_index, **data)

    def error(self, event: str, *, record_index: int | None = None, **data: Any) -> None:
        self.log("ERROR", event, record_index=record_index, **data)

    def exception(self, event: str, *, exc: BaseException, **data: Any) -> None:
        err = {
            "type": type(exc).__name__,
            "message": _truncate(str(exc), limit=2000),
            "traceback": _truncate(
                "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
                limit=12000,
            ),
        }
        self.log("ERROR", event, error=err, **data)

    def log(
        self,
        level: str,
        event: str,
        *,
        record_index: int | None = None,
        **data: Any,
    ) -> None:
        if self._path is None:
            return

        record: dict[str, Any] = {
            "ts": _utc_now_iso(),
            "level": (level or "").strip().upper() or "INFO",
            "event": (event or "").strip() or "event",
            "session_id": self._session_id,
        }

        if record_index is not None:
            record["record_index"] = int(record_index)

        if data:
            record["data"] = data

        self._write(record)

    def _ensure_open(self) -> None:
        if self._fp is not None or self._path is None:
            return

        self._path.parent.mkdir(parents=True, exist_ok=True)
        mode = "w" if self._overwrite else "a"
        self._fp = self._path.open(mode, encoding="utf-8", newline="\n")
        # Reopening after close() must not clobber what was already written.
        self._overwrite = False

    def _write(self, record: dict[str, Any]) -> None:
        self._ensure_open()
        if self._fp is None:
            return

        payload = json.dumps(
            record,
            ensure_ascii=False,
            sort_keys=True,
            separators=(",", ":"),
            default=str,
        )
        self._fp.write(payload + "\n")
        self._fp.flush()
