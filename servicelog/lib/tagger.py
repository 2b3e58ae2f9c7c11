# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.

import io
import threading
from datetime import datetime, timezone
from typing import Callable

from servicelog.lib.exceptions import SinkWriteError
from servicelog.lib.sink import NEWLINE, Sink, flush_sink, line_end, write_fully

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(ts: datetime) -> str:
    """RFC 3339 in UTC with millisecond precision, e.g. 2021-05-13T03:16:51.001Z"""
    ts = ts.astimezone(timezone.utc)
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


class LineTagWriter(io.RawIOBase):
    """
    A writer that inserts a timestamp and a label before every line written to the sink.

    For the input:
        first\\n
        second\\n
    the sink receives:
        2021-05-13T03:16:51.001Z [test] first\\n
        2021-05-13T03:16:52.002Z [test] second\\n

    The prefix is encoding, not payload, so its bytes are never included in the count returned
    by write(). Safe for concurrent use; each write() holds the lock for its whole duration.
    """

    def __init__(self, sink: Sink, label: str, clock: Clock | None = None):
        super().__init__()
        self.sink = sink
        self.label = label
        self.clock = clock or utc_now
        self._lock = threading.Lock()
        self._at_line_start = True
        # Prefix bytes not yet accepted by the sink.
        self._pending = b""

    def writable(self) -> bool:
        return True

    def flush(self) -> None:
        super().flush()
        flush_sink(self.sink)

    def _prefix(self) -> bytes:
        return f"{format_timestamp(self.clock())} [{self.label}] ".encode("utf-8")

    def _flush_prefix(self, consumed: int) -> None:
        try:
            write_fully(self.sink, self._pending)
        except SinkWriteError as e:
            self._pending = self._pending[e.consumed :]
            raise SinkWriteError(consumed, e.cause) from e.cause
        self._pending = b""

    def write(self, data) -> int:
        data = bytes(data)
        with self._lock:
            consumed = 0
            while consumed < len(data):
                if self._at_line_start:
                    self._at_line_start = False
                    self._pending = self._prefix()
                if self._pending:
                    self._flush_prefix(consumed)

                end = line_end(data, consumed)
                try:
                    write_fully(self.sink, data[consumed:end])
                except SinkWriteError as e:
                    raise SinkWriteError(consumed + e.consumed, e.cause) from e.cause
                consumed = end
                # Only start a new line once the terminator is actually in the sink.
                self._at_line_start = data[end - 1 : end] == NEWLINE
            return consumed
