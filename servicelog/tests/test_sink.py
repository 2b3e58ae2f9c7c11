import unittest
from dataclasses import dataclass

from servicelog.lib.exceptions import ShortWriteError, SinkWriteError
from servicelog.lib.sink import line_end, write_fully
from servicelog.lib.tagger import LineTagWriter
from servicelog.tests.doubles import FakeClock, LimitedSink, OneByteSink, RecordingSink, ZeroSink


@dataclass
class LineEndCase:
    name: str
    data: bytes
    start: int
    expected: int


class NoneSink(object):
    def __init__(self):
        self.data = b""

    def write(self, data):
        self.data += bytes(data)


class SinkTest(unittest.TestCase):
    def test_line_end(self):
        test_cases = [
            LineEndCase("empty", b"", 0, 0),
            LineEndCase("no newline", b"abc", 0, 3),
            LineEndCase("newline included", b"ab\ncd", 0, 3),
            LineEndCase("from offset", b"a\nb\nc", 2, 4),
            LineEndCase("newline at offset", b"a\nb", 1, 2),
        ]
        for test_case in test_cases:
            with self.subTest(msg=test_case.name, test_case=test_case):
                self.assertEqual(test_case.expected, line_end(test_case.data, test_case.start))

    def test_write_fully_retries_partial_writes(self):
        sink = OneByteSink()
        self.assertEqual(5, write_fully(sink, b"hello"))
        self.assertEqual(b"hello", sink.value())
        self.assertEqual(5, len(sink.calls))

    def test_write_fully_none_means_everything(self):
        sink = NoneSink()
        self.assertEqual(5, write_fully(sink, b"hello"))
        self.assertEqual(b"hello", sink.data)

    def test_write_fully_failure(self):
        sink = LimitedSink(3)
        with self.assertRaises(SinkWriteError) as ctx:
            write_fully(sink, b"hello")
        self.assertEqual(3, ctx.exception.consumed)
        self.assertIsInstance(ctx.exception.cause, OSError)
        self.assertIs(ctx.exception.cause, ctx.exception.__cause__)

    def test_write_fully_zero_progress(self):
        with self.assertRaises(SinkWriteError) as ctx:
            write_fully(ZeroSink(), b"hello")
        self.assertEqual(0, ctx.exception.consumed)
        self.assertIsInstance(ctx.exception.cause, ShortWriteError)

    def test_write_fully_through_nested_writer(self):
        # The tag writer consumes "ab" before its sink fails.
        clock = FakeClock()
        prefix_len = len("2021-05-13T03:16:51.001Z [svc] ")
        inner = LimitedSink(prefix_len + 2)
        writer = LineTagWriter(inner, "svc", clock=clock)
        with self.assertRaises(SinkWriteError) as ctx:
            write_fully(writer, b"abcd\n")
        self.assertEqual(2, ctx.exception.consumed)
        self.assertIsInstance(ctx.exception.cause, OSError)

    def test_empty_write(self):
        sink = RecordingSink()
        self.assertEqual(0, write_fully(sink, b""))
        self.assertEqual([], sink.calls)
