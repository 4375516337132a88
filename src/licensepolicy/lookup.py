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

"""Policy lookup for one license discovered in a BOM.

A BOM declares a license in one of three ways: an SPDX ``id``, a free
text ``name``, or an SPDX ``expression``.  :func:`find_policy` routes
each to the matching database lookup so the discovery walk can tag a
license with a verdict without caring which form it found.

Usage::

    from licensepolicy.lookup import LicenseChoice, find_policy

    match = find_policy(db, LicenseChoice.expression('MIT OR GPL-2.0-only'))
    match.usage_policy  # UsagePolicy.ALLOW
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from licensepolicy._types import UsagePolicy
from licensepolicy.database import PolicyDatabase, PolicyMatch
from licensepolicy.expression import parse_expression
from licensepolicy.logging import get_logger

__all__ = [
    'LicenseChoice',
    'LicenseChoiceKind',
    'find_policy',
]

logger = get_logger(__name__)


class LicenseChoiceKind(enum.Enum):
    """How a BOM declared the license."""

    ID = 'id'
    NAME = 'name'
    EXPRESSION = 'expression'


@dataclass(frozen=True)
class LicenseChoice:
    """One license declaration pulled from a BOM.

    Attributes:
        kind: Which field the value came from.
        value: The raw string.
    """

    kind: LicenseChoiceKind
    value: str

    @classmethod
    def id(cls, value: str) -> LicenseChoice:
        """Declaration by SPDX id."""
        return cls(LicenseChoiceKind.ID, value)

    @classmethod
    def name(cls, value: str) -> LicenseChoice:
        """Declaration by license name."""
        return cls(LicenseChoiceKind.NAME, value)

    @classmethod
    def expression(cls, value: str) -> LicenseChoice:
        """Declaration by SPDX expression."""
        return cls(LicenseChoiceKind.EXPRESSION, value)


def find_policy(db: PolicyDatabase, choice: LicenseChoice) -> PolicyMatch:
    """Resolve the usage policy for *choice*.

    Expressions never carry a single record, so their match has
    ``record=None``; an expression that fails to parse is ``UNDEFINED``.
    """
    if not choice.value.strip():
        return PolicyMatch(UsagePolicy.UNDEFINED)
    if choice.kind is LicenseChoiceKind.ID:
        return db.find_by_id(choice.value)
    if choice.kind is LicenseChoiceKind.NAME:
        return db.find_by_family(choice.value)
    parsed = parse_expression(db, choice.value)
    logger.debug('license_expression_resolved', expression=choice.value, usage_policy=parsed.usage_policy)
    return PolicyMatch(parsed.usage_policy)
