# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.

from servicelog.lib.config import ChainConfig
from servicelog.lib.sink import Sink
from servicelog.lib.tagger import LineTagWriter
from servicelog.lib.trimmer import PatternTrimWriter, TimeTrimWriter


def build_chain(config: ChainConfig, sink: Sink, clock=None) -> Sink:
    """
    Compose the writers described by `config` on top of `sink` and return the outermost one.

    Data written to the result is trimmed of its time prefix, then of its pattern prefix, and is
    finally tagged before it reaches `sink`.
    """
    writer = LineTagWriter(sink, config.label, clock=clock)
    if config.trim_pattern is not None:
        writer = PatternTrimWriter(writer, config.trim_pattern, config.max_prefix_bytes)
    if config.trim_time_layout is not None:
        writer = TimeTrimWriter(writer, config.trim_time_layout, config.max_prefix_bytes)
    return writer
