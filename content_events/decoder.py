from __future__ import annotations

import codecs
import json
from dataclasses import dataclass
from typing import IO, Any, AnyStr, Callable, Iterator

from .errors import RecordMalformedError

DEFAULT_CHUNK_SIZE = 64 * 1024

ErrorFn = Callable[[RecordMalformedError], None]

_JSON = json.JSONDecoder()
_WHITESPACE = " \t\r\n"

# Longest literal prefix raw_decode reports before its own end: "-Infinit".
_TRUNCATION_MARGIN = 8


@dataclass(frozen=True)
class JsonValue:
    """One top-level JSON value and its zero-based position in the input."""

    index: int
    value: Any


class _ChunkReader:
    """
    Reads text from a text or binary stream; bytes are decoded as UTF-8.

    Invalid bytes come through as lone surrogates so the record holding them
    can be rejected downstream instead of being silently altered.
    """

    def __init__(self, stream: IO[AnyStr], chunk_size: int) -> None:
        self._stream = stream
        self._chunk_size = chunk_size
        self._bytes = codecs.getincrementaldecoder("utf-8-sig")(errors="surrogateescape")
        self._first = True
        self.eof = False

    def read(self) -> str:
        while not self.eof:
            data = self._stream.read(self._chunk_size)
            if not data:
                self.eof = True
                return self._bytes.decode(b"", final=True)

            if isinstance(data, bytes):
                text = self._bytes.decode(data)
            else:
                text = data
                if self._first and text.startswith("\ufeff"):
                    text = text[1:]
            self._first = False

            if text:
                return text
        return ""


class _Buffer:
    def __init__(self, reader: _ChunkReader) -> None:
        self._reader = reader
        self.text = ""
        self.pos = 0
        self.offset = 0  # characters discarded before text[0]

    @property
    def eof(self) -> bool:
        return self._reader.eof

    def more(self) -> bool:
        chunk = self._reader.read()
        if not chunk:
            return False
        self.offset += self.pos
        self.text = self.text[self.pos :] + chunk
        self.pos = 0
        return True

    def skip(self, chars: str) -> str:
        """Advance past any of `chars` and return the next character, or "" at EOF."""
        while True:
            text = self.text
            p = self.pos
            n = len(text)
            while p < n and text[p] in chars:
                p += 1
            self.pos = p
            if p < n:
                return text[p]
            if not self.more():
                return ""

    def decode(self) -> Any:
        """
        Decode the value starting at pos, reading more input as needed.

        Raises json.JSONDecodeError only when the error cannot be caused by the
        value being cut off at the end of the buffer.
        """
        while True:
            try:
                value, end = _JSON.raw_decode(self.text, self.pos)
            except json.JSONDecodeError as e:
                if self._maybe_truncated(e):
                    self.more()
                    continue
                raise

            # Numbers are not self-delimiting; "12" may continue as "345".
            if end == len(self.text) and not self.eof:
                self.more()
                continue

            self.pos = end
            return value

    def _maybe_truncated(self, e: json.JSONDecodeError) -> bool:
        if self.eof:
            return False
        # A string error is reported at its opening quote, however long the string.
        if e.msg.startswith("Unterminated string"):
            return True
        return e.pos >= len(self.text) - _TRUNCATION_MARGIN

    def resync(self, start: int) -> None:
        """Drop input up to the next "{" at or after `start`."""
        while True:
            p = self.text.find("{", start)
            if p >= 0:
                self.pos = p
                return

            self.pos = len(self.text)
            if not self.more():
                return
            start = 0


def iter_json_values(
    stream: IO[AnyStr],
    *,
    on_error: ErrorFn | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Iterator[JsonValue]:
    """
    Lazily yield every top-level JSON value in `stream`.

    Accepts concatenated / newline-delimited values as well as top-level arrays,
    whose elements are yielded one by one. A syntax error costs only the element
    it occurs in: `on_error` is called once and decoding resumes at the next
    "{" after the error position.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    buf = _Buffer(_ChunkReader(stream, chunk_size))
    in_array = False
    index = 0

    while True:
        ch = buf.skip(_WHITESPACE + ",")
        if not ch:
            return

        if ch == "[" and not in_array:
            in_array = True
            buf.pos += 1
            continue
        if ch == "]":
            # Also closes an array whose "[" was skipped while recovering.
            in_array = False
            buf.pos += 1
            continue

        try:
            value = buf.decode()
        except json.JSONDecodeError as e:
            if on_error is not None:
                on_error(
                    RecordMalformedError(
                        f"{e.msg} at char {buf.offset + e.pos}",
                        index=index,
                    )
                )
            index += 1
            buf.resync(max(e.pos, buf.pos + 1))
            continue

        yield JsonValue(index=index, value=value)
        index += 1
