from __future__ import annotations

from pathlib import Path
from typing import IO, Any, AnyStr, Iterator

from .config_schema import PipelineConfig
from .decoder import JsonValue, iter_json_values
from .diagnostics import PipelineStats, RejectFn, StderrReporter
from .errors import (
    EventTypeUnrecognizedError,
    IdentityNotEmailShapedError,
    RecordError,
    SourceUnavailableError,
)
from .event import Event
from .identity import IdentityFilter
from .normalize import normalize_record
from .raw_schema import RawRecord, parse_raw_record


def _validated(
    values: Iterator[JsonValue], reject: RejectFn
) -> Iterator[tuple[int, RawRecord]]:
    for item in values:
        try:
            yield item.index, parse_raw_record(item.value, index=item.index)
        except RecordError as e:
            reject(e)


def _normalized(
    records: Iterator[tuple[int, RawRecord]],
    reject: RejectFn,
    *,
    stats: PipelineStats,
    abort_on_unknown: bool,
) -> Iterator[tuple[int, Event]]:
    for index, raw in records:
        try:
            yield index, normalize_record(raw, index=index)
        except EventTypeUnrecognizedError as e:
            if abort_on_unknown:
                stats.count_rejection(e)
                raise
            reject(e)
        except RecordError as e:
            reject(e)


def iter_events(
    stream: IO[AnyStr],
    *,
    config: PipelineConfig | None = None,
    on_reject: RejectFn | None = None,
    stats: PipelineStats | None = None,
    identity_filter: IdentityFilter | None = None,
) -> Iterator[Event]:
    """
    Lazily decode, validate, normalize and filter the records in `stream`.

    Events come out in input order. Per-record failures never escape: each one
    is counted in `stats` and handed to `on_reject` (stderr diagnostics by
    default). Under the "abort" unknown-event policy EventTypeUnrecognizedError
    propagates and ends the run.
    """
    cfg = config or PipelineConfig()
    counts = stats if stats is not None else PipelineStats()
    report = on_reject if on_reject is not None else StderrReporter()
    email_filter = identity_filter or IdentityFilter(debug=cfg.debug)

    def reject(error: RecordError) -> None:
        counts.count_rejection(error)
        report(error)

    values = iter_json_values(stream, on_error=reject, chunk_size=cfg.chunk_size)
    records = _validated(values, reject)
    events = _normalized(
        records,
        reject,
        stats=counts,
        abort_on_unknown=cfg.aborts_on_unknown_event,
    )

    for index, event in events:
        if email_filter.accepts(event):
            counts.emitted += 1
            yield event
        else:
            reject(IdentityNotEmailShapedError(event.user_id, index=index))


class EventStream:
    """
    Single-pass iterator over the events of one input file.

    The stream owns the file handle: it is released when the events are
    exhausted, when a fatal error escapes, or when close() is called (directly or
    by leaving a `with` block), whichever comes first.
    """

    def __init__(
        self,
        fp: IO[Any],
        *,
        config: PipelineConfig | None = None,
        on_reject: RejectFn | None = None,
        source: str | Path | None = None,
    ) -> None:
        self._fp = fp
        self._source = str(source) if source is not None else None
        self.config = config or PipelineConfig()
        self.stats = PipelineStats()
        self._events = iter_events(
            fp, config=self.config, on_reject=on_reject, stats=self.stats
        )
        self._closed = False

    @classmethod
    def open(
        cls,
        path: str | Path | None = None,
        *,
        config: PipelineConfig | None = None,
        on_reject: RejectFn | None = None,
    ) -> "EventStream":
        cfg = config or PipelineConfig()
        p = Path(path if path is not None else cfg.input_path)
        try:
            fp = p.open("rb")
        except OSError as e:
            raise SourceUnavailableError(f"Failed to open input file: {p} ({e})") from e
        return cls(fp, config=cfg, on_reject=on_reject, source=p)

    @property
    def source(self) -> str | None:
        return self._source

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self) -> "EventStream":
        return self

    def __next__(self) -> Event:
        if self._closed:
            raise StopIteration
        try:
            return next(self._events)
        except StopIteration:
            self.close()
            raise
        except OSError as e:
            self.close()
            raise SourceUnavailableError(
                f"Failed to read input file: {self._source or '<stream>'} ({e})"
            ) from e
        except Exception:
            self.close()
            raise

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._events.close()
        finally:
            self._fp.close()

    def __enter__(self) -> "EventStream":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()


def load_events(
    path: str | Path | None = None,
    *,
    config: PipelineConfig | None = None,
    on_reject: RejectFn | None = None,
) -> EventStream:
    """
    Open `path` (or config.input_path) and return its event stream.

    The file is opened immediately so a missing or unreadable input raises
    SourceUnavailableError here rather than on the first iteration.
    """
    return EventStream.open(path, config=config, on_reject=on_reject)
