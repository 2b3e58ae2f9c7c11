# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.

import io
import re
from abc import ABC, abstractmethod
from datetime import datetime

from servicelog.lib.exceptions import InvalidPatternError, SinkWriteError
from servicelog.lib.sink import NEWLINE, Sink, flush_sink, line_end, write_fully


class PrefixResolver(ABC):
    """Decides how many leading bytes of a line are a removable prefix."""

    @abstractmethod
    def resolve(self, buf: bytes, checked: int) -> int | None:
        """
        Returns the length of the prefix at the start of `buf`, 0 when there is none, or None
        when no decision can be made until more bytes arrive.

        `checked` is the length of `buf` the last time this line came back undecided. Decisions
        only depend on content, so a resolver may skip work it already did for those bytes.
        """


class PatternResolver(PrefixResolver):
    def __init__(self, pattern: str):
        self.pattern = pattern
        try:
            self.regex = re.compile(pattern.encode("utf-8"))
        except re.error as e:
            raise InvalidPatternError(pattern, str(e)) from e

    def resolve(self, buf: bytes, checked: int) -> int | None:
        # Only match against complete lines; an incomplete one could still match differently.
        # A terminator that was already examined without a decision stays undecided, so resume
        # the search at the first one past it.
        start = buf.rfind(NEWLINE, 0, checked) + 1
        while True:
            end = buf.find(NEWLINE, start)
            if end == -1:
                return None
            end += 1
            m = self.regex.match(buf, 0, end)
            if m is None:
                return 0
            if m.end() < end:
                return m.end()
            # The match ran into the terminator; a longer match may exist with more data.
            start = end


class TimeResolver(PrefixResolver):
    def __init__(self, layout: str):
        self.layout = layout

    def parses(self, candidate: bytes) -> bool:
        try:
            datetime.strptime(candidate.decode("utf-8"), self.layout)
        except ValueError:
            return False
        return True

    def resolve(self, buf: bytes, checked: int) -> int | None:
        for n in range(checked + 1 if checked else 0, len(buf) + 1):
            if self.parses(buf[:n]):
                return n
        return None


class PrefixTrimWriter(io.RawIOBase):
    """
    A writer that removes a leading prefix from every line before passing it to the sink.

    Bytes of a line are buffered until `resolver` can tell how long the line's prefix is. The
    prefix is dropped and the rest of the line, including the newline, is forwarded unchanged.
    Bytes that have been buffered count as consumed.

    If `max_prefix_bytes` is set and that many bytes are buffered without a decision, the line is
    taken to have no prefix and is forwarded as is. Otherwise the buffer is unbounded.

    Not safe for concurrent use.
    """

    def __init__(
        self, sink: Sink, resolver: PrefixResolver | None, max_prefix_bytes: int | None = None
    ):
        super().__init__()
        self.sink = sink
        self.resolver = resolver
        self.max_prefix_bytes = max_prefix_bytes
        self._seeking = True
        self._buf = bytearray()
        self._checked = 0
        # Consumed bytes past a resolved prefix that have not reached the sink yet.
        self._backlog = bytearray()

    def writable(self) -> bool:
        return True

    def flush(self) -> None:
        """Delivers bytes of lines whose prefix is resolved. An unresolved line stays buffered."""
        super().flush()
        self._drain()
        flush_sink(self.sink)

    @property
    def buffered(self) -> int:
        return len(self._buf) + len(self._backlog)

    def _resolve(self) -> int | None:
        # Only the first max_prefix_bytes can hold a prefix, however the bytes were chunked.
        buf = bytes(self._buf[: self.max_prefix_bytes])
        n = self.resolver.resolve(buf, self._checked)
        if n is None:
            if self.max_prefix_bytes is not None and len(buf) >= self.max_prefix_bytes:
                return 0
            self._checked = len(buf)
        return n

    def _drain(self) -> None:
        while True:
            if self._seeking:
                if self._backlog:
                    self._buf += self._backlog
                    self._backlog.clear()
                if not self._buf:
                    return
                n = self._resolve()
                if n is None:
                    return
                # A prefix never reaches past the end of its own line.
                n = min(n, line_end(self._buf))
                self._backlog = self._buf[n:]
                # Dropping a whole line leaves the next one still to be examined.
                self._seeking = self._buf[n - 1 : n] == NEWLINE if n else False
                self._buf = bytearray()
                self._checked = 0

            if not self._backlog:
                return
            end = line_end(self._backlog)
            try:
                write_fully(self.sink, self._backlog[:end])
            except SinkWriteError as e:
                del self._backlog[: e.consumed]
                raise
            self._seeking = self._backlog[end - 1 : end] == NEWLINE
            del self._backlog[:end]

    def write(self, data) -> int:
        data = bytes(data)
        try:
            self._drain()
        except SinkWriteError as e:
            raise SinkWriteError(0, e.cause) from e.cause

        consumed = 0
        while consumed < len(data):
            if self._seeking:
                self._buf += data[consumed:]
                consumed = len(data)
                try:
                    self._drain()
                except SinkWriteError as e:
                    raise SinkWriteError(consumed, e.cause) from e.cause
                continue

            end = line_end(data, consumed)
            try:
                write_fully(self.sink, data[consumed:end])
            except SinkWriteError as e:
                raise SinkWriteError(consumed + e.consumed, e.cause) from e.cause
            consumed = end
            self._seeking = data[end - 1 : end] == NEWLINE
        return consumed


class PatternTrimWriter(PrefixTrimWriter):
    """
    Removes a regular expression match anchored at the start of every line.

    Raises InvalidPatternError if `pattern` does not compile.
    """

    def __init__(self, sink: Sink, pattern: str, max_prefix_bytes: int | None = None):
        # Writer state must exist before compiling; close() still runs on a failed construction.
        super().__init__(sink, None, max_prefix_bytes)
        self.resolver = PatternResolver(pattern)


class TimeTrimWriter(PrefixTrimWriter):
    """
    Removes a leading timestamp in `layout`, a datetime.strptime format, from every line.

    The shortest leading run of bytes that parses completely is removed. A line that never
    starts with a parseable timestamp stays buffered unless max_prefix_bytes is set.
    """

    def __init__(self, sink: Sink, layout: str, max_prefix_bytes: int | None = None):
        super().__init__(sink, TimeResolver(layout), max_prefix_bytes)
