import threading
import unittest

from servicelog.lib.exceptions import SinkWriteError
from servicelog.lib.streamer import TextStreamAdapter
from servicelog.lib.tagger import LineTagWriter
from servicelog.tests.doubles import FakeClock, LimitedSink, RecordingSink


class FlushCountingSink(RecordingSink):
    def __init__(self):
        super().__init__()
        self.flushes = 0

    def flush(self):
        self.flushes += 1


class TextStreamAdapterTest(unittest.TestCase):
    def test_encodes_text(self):
        sink = RecordingSink()
        adapter = TextStreamAdapter(sink)
        self.assertEqual(6, adapter.write("héllo\n"))
        self.assertEqual("héllo\n".encode("utf-8"), sink.value())
        self.assertEqual("utf-8", adapter.encoding)
        self.assertTrue(adapter.writable())

    def test_feeds_writer_chain(self):
        sink = RecordingSink()
        adapter = TextStreamAdapter(LineTagWriter(sink, "svc", clock=FakeClock()))
        adapter.write("a")
        adapter.write("b\n")
        adapter.flush()
        self.assertEqual(b"2021-05-13T03:16:51.001Z [svc] ab\n", sink.value())

    def test_flush_reaches_sink(self):
        sink = FlushCountingSink()
        adapter = TextStreamAdapter(LineTagWriter(sink, "svc", clock=FakeClock()))
        adapter.write("x")
        adapter.flush()
        self.assertEqual(1, sink.flushes)

    def test_sink_failure_propagates(self):
        adapter = TextStreamAdapter(LimitedSink(0))
        with self.assertRaises(SinkWriteError):
            adapter.write("x")

    def test_concurrent_producers(self):
        sink = RecordingSink()
        adapter = TextStreamAdapter(LineTagWriter(sink, "svc"))

        def produce(name: str):
            for i in range(100):
                adapter.write(f"{name} {i}\n")

        threads = [threading.Thread(target=produce, args=(n,)) for n in ("out", "err")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(200, len(sink.value().splitlines()))
