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

"""Usage-policy algebra for compound license expressions.

Two resolved operands and their conjunction give one verdict:

    ┌──────────────┬──────────────────────────┬──────────────────────────┐
    │              │ AND (pessimistic)        │ OR (optimistic)          │
    ├──────────────┼──────────────────────────┼──────────────────────────┤
    │ first match  │ any DENY -> DENY         │ any ALLOW -> ALLOW       │
    │ then         │ any NEEDS_REVIEW         │ any NEEDS_REVIEW         │
    │ otherwise    │ ALLOW                    │ DENY                     │
    └──────────────┴──────────────────────────┴──────────────────────────┘

An ``UNDEFINED`` operand makes the result ``UNDEFINED`` whatever the
conjunction, and so does a missing conjunction.
"""

from __future__ import annotations

from licensepolicy._types import Conjunction, UsagePolicy

__all__ = [
    'combine',
]


def combine(left: UsagePolicy, right: UsagePolicy, conjunction: Conjunction) -> UsagePolicy:
    """Combine two resolved usage policies under *conjunction*.

    Args:
        left: Verdict of the left operand.
        right: Verdict of the right operand.
        conjunction: Operator joining them.

    Returns:
        The combined verdict.  Order of the operands never matters.
    """
    if left is UsagePolicy.UNDEFINED or right is UsagePolicy.UNDEFINED:
        return UsagePolicy.UNDEFINED
    sides = (left, right)
    if conjunction is Conjunction.AND:
        if UsagePolicy.DENY in sides:
            return UsagePolicy.DENY
        if UsagePolicy.NEEDS_REVIEW in sides:
            return UsagePolicy.NEEDS_REVIEW
        return UsagePolicy.ALLOW
    if conjunction is Conjunction.OR:
        if UsagePolicy.ALLOW in sides:
            return UsagePolicy.ALLOW
        if UsagePolicy.NEEDS_REVIEW in sides:
            return UsagePolicy.NEEDS_REVIEW
        return UsagePolicy.DENY
    return UsagePolicy.UNDEFINED
