# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.

import io
import threading

from servicelog.lib.sink import Sink, flush_sink, write_fully


class TextStreamAdapter(io.TextIOBase):
    """
    A text file-like object that feeds a byte writer.

    Sub-processes are read as text by invoke; this encodes each chunk and hands it to the writer
    chain unchanged, leaving line handling to the writers. Writes are serialized so that several
    producers can share one chain.
    """

    def __init__(self, writer: Sink, encoding: str = "utf-8", errors: str = "replace"):
        self.writer = writer
        self._encoding = encoding
        self._errors = errors
        self._lock = threading.Lock()

    @property
    def encoding(self) -> str:
        return self._encoding

    @property
    def errors(self) -> str:
        return self._errors

    def writable(self) -> bool:
        return True

    def write(self, message: str) -> int:
        data = message.encode(self._encoding, self._errors)
        with self._lock:
            write_fully(self.writer, data)
        return len(message)

    def flush(self):
        flush_sink(self.writer)
