# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.

import signal
import sys
from threading import Event
from typing import BinaryIO

from servicelog.lib.chain import build_chain
from servicelog.lib.command import Command, RunResult
from servicelog.lib.config import CONFIG_ENV_VAR_KEY, ChainConfig, Config, Settings
from servicelog.lib.exceptions import ServiceLogError
from servicelog.lib.logging import Logger, get_logger
from servicelog.lib.sink import Sink, flush_sink, write_fully

READ_CHUNK_BYTES = 64 * 1024

shutdown_flag = Event()


def signal_handler(signal_number, _frame):
    # Interrupt a blocking read of stdin; invoke also forwards this to a running command.
    shutdown_flag.set()
    raise KeyboardInterrupt(f"caught signal; signal_number={signal_number}")


def pump(source: BinaryIO, chain: Sink, sink: Sink, shutdown: Event | None = None) -> int:
    """Copy `source` into `chain` until EOF or shutdown. Returns the number of bytes copied."""
    read = getattr(source, "read1", source.read)
    total = 0
    while shutdown is None or not shutdown.is_set():
        data = read(READ_CHUNK_BYTES)
        if not data:
            break
        total += write_fully(chain, data)
        flush_sink(sink)
    return total


def run(logger: Logger, config: ChainConfig, source: BinaryIO, sink: BinaryIO) -> int:
    chain = build_chain(config, sink)
    if config.command:
        result = Command(logger, chain, config.command).run()
        return 0 if result.run_result == RunResult.SUCCESS else 1

    logger.info("filtering stdin", label=config.label)
    total = pump(source, chain, sink, shutdown_flag)
    logger.info("stdin exhausted", label=config.label, bytes=total)
    return 0


def main() -> int:
    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    try:
        settings = Settings.from_env()
    except ServiceLogError as e:
        print(f"servicelog: {e}", file=sys.stderr)
        return 1

    logger = get_logger("servicelog", settings.log_level)
    if settings.config_path is None:
        logger.error(f"{CONFIG_ENV_VAR_KEY} must point to a config file")
        return 1

    try:
        config = Config.load_chain_config(settings.config_path)
        return run(logger, config, sys.stdin.buffer, sys.stdout.buffer)
    except KeyboardInterrupt as e:
        logger.info("shutting down", reason=str(e))
        return 130
    except ServiceLogError as e:
        logger.error("servicelog failed", error=str(e))
    except Exception as e:
        # Dump the entire stack trace as we do not expect this case.
        logger.exception(e)
    return 1


if __name__ == "__main__":
    sys.exit(main())
