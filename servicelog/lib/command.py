# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.

from dataclasses import dataclass
from enum import Enum
from typing import List

from invoke import run
from invoke.exceptions import ThreadException

from servicelog.lib.logging import Logger
from servicelog.lib.sink import Sink
from servicelog.lib.streamer import TextStreamAdapter


class RunResult(Enum):
    SUCCESS = "success"
    FAIL = "fail"


@dataclass
class CommandResult:
    run_result: RunResult
    exited: int | None


class Command(object):
    """
    Runs a single command and streams its stdout and stderr through a writer chain.

    invoke reads stdout and stderr on separate threads, so both share one adapter, which
    serializes the writes into the chain.
    """

    def __init__(
        self,
        logger: Logger,
        chain: Sink,
        command: str,
        args: List[str] | None = None,
    ):
        self.logger = logger
        self.chain = chain
        self.command = command
        self.args = args
        self.streamer = TextStreamAdapter(self.chain)

    def run(self) -> CommandResult:
        args = " ".join(self.args) if self.args else None
        cmd = f"{self.command} {args}" if args else self.command
        self.logger.info("running command", cmd=cmd)
        try:
            result = run(
                cmd,
                warn=True,
                in_stream=False,
                out_stream=self.streamer,
                err_stream=self.streamer,
            )
        except ThreadException as e:
            # A failing sink surfaces here, raised from one of invoke's IO threads.
            self.logger.error("streaming command output", cmd=cmd, e=str(e))
            return CommandResult(RunResult.FAIL, None)

        run_result = RunResult.FAIL
        if result and result.ok:
            run_result = RunResult.SUCCESS
        exited = result.exited if result else None
        self.logger.info("command finished", cmd=cmd, result=run_result.value, exited=exited)
        return CommandResult(run_result, exited)
