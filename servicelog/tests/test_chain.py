import re
import unittest

from servicelog.lib.chain import build_chain
from servicelog.lib.config import ChainConfig
from servicelog.lib.tagger import LineTagWriter
from servicelog.lib.trimmer import PatternTrimWriter, TimeTrimWriter
from servicelog.tests.doubles import FakeClock, OneByteSink, RecordingSink, chunks

TS_1 = "2021-05-13T03:16:51.001Z"
TS_2 = "2021-05-13T03:16:51.002Z"


class BuildChainTest(unittest.TestCase):
    def test_tagger_only(self):
        chain = build_chain(ChainConfig(label="web"), RecordingSink())
        self.assertIsInstance(chain, LineTagWriter)

    def test_composition_order(self):
        sink = RecordingSink()
        config = ChainConfig(
            label="web", trim_time_layout="%Y-%m-%d %H:%M:%S ", trim_pattern=r"\[\w+\] "
        )
        chain = build_chain(config, sink)
        self.assertIsInstance(chain, TimeTrimWriter)
        self.assertIsInstance(chain.sink, PatternTrimWriter)
        self.assertIsInstance(chain.sink.sink, LineTagWriter)
        self.assertIs(sink, chain.sink.sink.sink)

    def test_restamps_lines(self):
        data = b"2024-01-02 03:04:05 [INFO] started\n2024-01-02 03:04:06 [WARN] slow\n"
        expected = f"{TS_1} [web] started\n{TS_2} [web] slow\n".encode()
        config = ChainConfig(
            label="web", trim_time_layout="%Y-%m-%d %H:%M:%S ", trim_pattern=r"\[\w+\] "
        )
        for size in (1, 4, len(data)):
            with self.subTest(chunk_size=size):
                sink = RecordingSink()
                chain = build_chain(config, sink, clock=FakeClock())
                consumed = 0
                for chunk in chunks(data, size):
                    consumed += chain.write(chunk)
                self.assertEqual(len(data), consumed)
                self.assertEqual(expected, sink.value())

    def test_retags_own_output(self):
        first = RecordingSink()
        build_chain(ChainConfig(label="inner"), first, clock=FakeClock()).write(b"hello\n")

        sink = OneByteSink()
        config = ChainConfig(label="outer", trim_time_layout="%Y-%m-%dT%H:%M:%S.%fZ ")
        build_chain(config, sink, clock=FakeClock()).write(first.value())
        self.assertIsNotNone(
            re.fullmatch(rb"\S+Z \[outer\] \[inner\] hello\n", sink.value()), sink.value()
        )
