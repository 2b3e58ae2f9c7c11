# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.

import logging
import sys
from datetime import datetime, timezone
from typing import Any, TextIO, Union

import structlog
from structlog.stdlib import BoundLogger

Logger = Union[BoundLogger, Any]


def add_timestamp(logger, method_name, event_dict):
    """
    Add an ISO 8601 UTC timestamp so that our own diagnostics line up with the timestamps that
    the tag writer puts on service output.
    """
    event_dict["@timestamp"] = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return event_dict


def shared_processors(const_kvs: dict[str, str] | None = None) -> list:
    # These run for BOTH the loggers created here and third-party library logs.
    processors = [
        structlog.contextvars.merge_contextvars,
        add_timestamp,
        structlog.processors.add_log_level,
        structlog.processors.CallsiteParameterAdder(
            {
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            }
        ),
        structlog.processors.EventRenamer("message"),
        structlog.processors.dict_tracebacks,
    ]
    # Add processors to inject a set of constant key/value pairs.
    for k, v in (const_kvs or {}).items():
        processors.append(
            lambda logger, method_name, event_dict, key=k, value=v: {**event_dict, key: value}
        )
    return processors


def get_logger(
    name: str,
    log_level: str,
    stream: TextIO | None = None,
    cache_logger: bool = True,
    force_reconfig: bool = False,
    const_kvs: dict[str, str] | None = None,
) -> Logger:
    """
    Returns a structlog logger that renders JSON, as does every stdlib logger in the process.

    Output goes to stderr by default; stdout is reserved for the decorated service log stream.
    """
    if force_reconfig:
        structlog.reset_defaults()
        # Also clear handlers from the root logger so we don't duplicate them
        logging.getLogger().handlers.clear()

    processors = shared_processors(const_kvs)

    if not structlog.is_configured():
        structlog.configure(
            processors=processors
            + [
                # Prepare the data for the final formatter
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=cache_logger,
        )

    # Render everything as JSON, regardless of how other libraries are outputting logs.
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.JSONRenderer(),
        foreign_pre_chain=processors,
    )

    # Hijack the root logger to ensure we remove any existing handlers.
    root_logger = logging.getLogger()
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper()))

    return structlog.get_logger(name)
