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

"""Tests for licensepolicy.logging module."""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterator

import pytest
import structlog
from licensepolicy._types import Conjunction, UsagePolicy
from licensepolicy.database import PolicyDatabase
from licensepolicy.expression import parse_expression
from licensepolicy.logging import configure_logging, get_logger, render_enum_values


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Restore structlog defaults so other modules can capture logs."""
    yield
    structlog.reset_defaults()


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_default_level_is_info(self) -> None:
        """Default logging level should be INFO."""
        configure_logging()
        assert logging.root.level == logging.INFO

    def test_verbose_sets_debug(self) -> None:
        """Verbose flag should set DEBUG level."""
        configure_logging(verbose=True)
        assert logging.root.level == logging.DEBUG

    def test_quiet_sets_warning(self) -> None:
        """Quiet flag should set WARNING level."""
        configure_logging(quiet=True)
        assert logging.root.level == logging.WARNING

    def test_quiet_wins_over_verbose(self) -> None:
        """Quiet should take precedence when both flags are set."""
        configure_logging(verbose=True, quiet=True)
        assert logging.root.level == logging.WARNING

    def test_json_log_does_not_crash(self) -> None:
        """JSON log mode should configure without errors."""
        configure_logging(json_log=True)
        log = get_logger('test')
        log.info('test_json', key='value', usage_policy=UsagePolicy.DENY)

    def test_idempotent(self) -> None:
        """Calling configure_logging twice should not crash."""
        configure_logging()
        configure_logging(verbose=True)
        assert logging.root.level == logging.DEBUG

    def test_enum_processor_installed(self) -> None:
        """The enum renderer should be part of the processor chain."""
        configure_logging()
        assert render_enum_values in structlog.get_config()['processors']


class TestGetLogger:
    """Tests for get_logger()."""

    def test_returns_bound_logger(self) -> None:
        """get_logger should return a structlog logger."""
        configure_logging()
        log = get_logger('test')
        assert log is not None

    def test_default_name(self) -> None:
        """Default logger name should be 'licensepolicy'."""
        configure_logging()
        log = get_logger()
        assert log is not None

    def test_logger_can_log(self) -> None:
        """Logger should be able to emit messages without crashing."""
        configure_logging(quiet=True)
        log = get_logger('test')
        log.info('test message', key='value')
        log.debug('debug message')
        log.warning('warning message', conjunction=Conjunction.OR)


class TestRenderEnumValues:
    """Tests for the structlog enum processor."""

    def test_usage_policy_rendered_by_value(self) -> None:
        """UsagePolicy members are replaced with their policy-file spelling."""
        result = render_enum_values(None, 'info', {'event': 'x', 'resolved': UsagePolicy.NEEDS_REVIEW})
        assert result['resolved'] == 'needs-review'

    def test_conjunction_rendered_by_value(self) -> None:
        """Conjunction.NONE renders as an empty string."""
        result = render_enum_values(None, 'debug', {'event': 'x', 'conjunction': Conjunction.NONE})
        assert result['conjunction'] == ''

    def test_any_enum(self) -> None:
        """Any Enum subclass is rendered by value."""

        class Color(enum.Enum):
            RED = 1

        assert render_enum_values(None, 'info', {'c': Color.RED}) == {'c': 1}

    def test_other_values_pass_through(self) -> None:
        """Non-enum values are not modified."""
        event = {'event': 'test', 'count': 42, 'flag': True, 'empty': None, 'name': 'MIT'}
        assert render_enum_values(None, 'info', dict(event)) == event


class TestLibraryDoesNotConfigure:
    """Library code logs through get_logger() only."""

    def test_root_logger_untouched(self) -> None:
        """Building a database and parsing leave handlers and level alone."""
        handlers = list(logging.root.handlers)
        level = logging.root.level
        db = PolicyDatabase.build([])
        parse_expression(db, 'MIT OR (ISC')
        assert logging.root.handlers == handlers
        assert logging.root.level == level
