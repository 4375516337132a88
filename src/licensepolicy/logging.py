# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""Structured logging for licensepolicy.

Configures `structlog <https://www.structlog.org/>`_ with two output modes:

- **Console** (default): colored when stderr is a TTY, human-readable.
- **JSON** (``json_log=True``): one JSON object per line.

Both modes write to stderr so stdout stays free for the caller's own
report output.  Library modules only call :func:`get_logger`; setting
up handlers and levels is left to the embedding application.

Usage::

    from licensepolicy.logging import configure_logging, get_logger

    configure_logging(verbose=True)
    log = get_logger(__name__)
    log.info('policy_database_built', ids=412, families=138)
"""

from __future__ import annotations

import enum
import logging
import sys
from typing import Any

import structlog


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    json_log: bool = False,
) -> None:
    """Configure structlog for licensepolicy.

    Should be called once by the embedding application, before any
    logging calls.  Library code never calls it on its own.

    Args:
        verbose: Enable debug-level output (parser tracing).
        quiet: Suppress info-level output (only warnings and errors).
        json_log: Use JSON output instead of console output.
    """
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        format='%(message)s',
        stream=sys.stderr,
        level=level,
        force=True,
    )

    shared_processors: list[structlog.types.Processor] = [  # type: ignore[assignment]
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt='iso'),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        render_enum_values,
    ]

    if json_log:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(),
        )

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


def get_logger(name: str = 'licensepolicy') -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger.

    Args:
        name: Logger name, used for filtering and identification.

    Returns:
        A :class:`structlog.stdlib.BoundLogger` instance.
    """
    return structlog.get_logger(name)


def render_enum_values(
    logger: Any,  # noqa: ANN401
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Structlog processor: log enum members by their value.

    Usage policies and conjunctions are passed to log calls as enum
    members; both renderers should show ``deny`` rather than
    ``<UsagePolicy.DENY: 'deny'>``.
    """
    return {k: v.value if isinstance(v, enum.Enum) else v for k, v in event_dict.items()}


__all__ = [
    'configure_logging',
    'get_logger',
    'render_enum_values',
]
