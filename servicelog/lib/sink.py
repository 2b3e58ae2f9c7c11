# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.

from typing import Any, Protocol

from servicelog.lib.exceptions import ShortWriteError, SinkWriteError

NEWLINE = b"\n"


class Sink(Protocol):
    def write(self, data: Any) -> int | None: ...


def write_fully(sink: Sink, data) -> int:
    """
    Write all of `data` to `sink`, retrying partial writes.

    A `None` return from the sink is taken to mean the whole chunk was accepted, which is what
    plain file-like objects that don't report a count do.

    Raises:
        SinkWriteError: with `consumed` set to the bytes of `data` the sink accepted before it
        failed.
    """
    view = memoryview(data)
    written = 0
    while written < len(view):
        chunk = view[written:]
        try:
            n = sink.write(chunk)
        except SinkWriteError as e:
            # The sink is itself a writer; it consumed part of the chunk before its own sink failed.
            raise SinkWriteError(written + e.consumed, e.cause) from e.cause
        except Exception as e:
            raise SinkWriteError(written, e) from e
        if n is None:
            n = len(chunk)
        if n <= 0:
            err = ShortWriteError(len(chunk))
            raise SinkWriteError(written, err) from err
        written += n
    return written


def line_end(data, start: int = 0) -> int:
    """Returns the index just past the next newline at or after `start`, or len(data)."""
    idx = data.find(NEWLINE, start)
    if idx == -1:
        return len(data)
    return idx + 1


def flush_sink(sink: Sink) -> None:
    flush = getattr(sink, "flush", None)
    if flush is not None:
        flush()
