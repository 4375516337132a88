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

"""Shared leaf-level types used across licensepolicy.

This module must have **zero** imports from other ``licensepolicy``
modules to avoid circular-import chains.  It is safe to import from any
module in the project.
"""

from __future__ import annotations

import enum

__all__ = [
    'STORED_POLICIES',
    'Conjunction',
    'LicensePolicyError',
    'UsagePolicy',
]


class LicensePolicyError(Exception):
    """Base class for every error raised by licensepolicy."""


class UsagePolicy(enum.Enum):
    """Organizational verdict for a license.

    ``ALLOW``, ``DENY`` and ``NEEDS_REVIEW`` are the only values a policy
    record may store.  ``UNDEFINED`` is a resolution outcome only: no
    record matched, or the verdict could not be determined.
    """

    ALLOW = 'allow'
    DENY = 'deny'
    NEEDS_REVIEW = 'needs-review'
    UNDEFINED = 'UNDEFINED'

    @classmethod
    def parse(cls, value: object) -> UsagePolicy:
        """Map a stored ``usagePolicy`` string to a member.

        Raises:
            ValueError: If *value* is not one of the three storable values.
        """
        for member in STORED_POLICIES:
            if value == member.value:
                return member
        raise ValueError(f'invalid usage policy {value!r}; expected one of: {", ".join(p.value for p in STORED_POLICIES)}')

    @property
    def is_defined(self) -> bool:
        """``False`` only for :attr:`UNDEFINED`."""
        return self is not UsagePolicy.UNDEFINED

    def __str__(self) -> str:
        """Return the policy-file spelling of the verdict."""
        return self.value


# Values legal in a policy record, in policy-file order.
STORED_POLICIES: tuple[UsagePolicy, ...] = (
    UsagePolicy.ALLOW,
    UsagePolicy.DENY,
    UsagePolicy.NEEDS_REVIEW,
)


class Conjunction(enum.Enum):
    """Boolean operator joining the two operands of a compound expression.

    ``NONE`` means no operator was ever seen for the node.
    """

    AND = 'AND'
    OR = 'OR'
    NONE = ''

    def __str__(self) -> str:
        """Return the operator keyword (empty for ``NONE``)."""
        return self.value
