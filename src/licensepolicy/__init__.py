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

"""License usage-policy resolution for BOM license declarations.

Parses SPDX license expressions, resolves each identifier against an
organization's policy file and combines the results into one
``allow`` / ``deny`` / ``needs-review`` verdict (``UNDEFINED`` when no
verdict can be given).

Usage::

    import licensepolicy

    db = licensepolicy.get_policy_database()
    parsed = licensepolicy.parse_expression(db, 'Apache-2.0 AND (MIT OR GPL-2.0-only)')
    parsed.usage_policy  # UsagePolicy.ALLOW
"""

from licensepolicy._types import Conjunction, LicensePolicyError, UsagePolicy
from licensepolicy.algebra import combine
from licensepolicy.config import ConfigError, PolicyConfig, load_config, resolve_config
from licensepolicy.database import (
    FamilyConflict,
    FamilyConflictError,
    PolicyDatabase,
    PolicyMatch,
    get_policy_database,
    reset_policy_databases,
)
from licensepolicy.expression import (
    CompoundExpression,
    ExpressionError,
    ExpressionNode,
    ParsedExpression,
    SimpleExpression,
    parse_expression,
    tokenize,
)
from licensepolicy.lookup import LicenseChoice, LicenseChoiceKind, find_policy
from licensepolicy.records import InvalidPolicyRecord, PolicyLoadError, PolicyRecord

__all__ = [
    'CompoundExpression',
    'ConfigError',
    'Conjunction',
    'ExpressionError',
    'ExpressionNode',
    'FamilyConflict',
    'FamilyConflictError',
    'InvalidPolicyRecord',
    'LicenseChoice',
    'LicenseChoiceKind',
    'LicensePolicyError',
    'ParsedExpression',
    'PolicyConfig',
    'PolicyDatabase',
    'PolicyLoadError',
    'PolicyMatch',
    'PolicyRecord',
    'SimpleExpression',
    'UsagePolicy',
    'combine',
    'find_policy',
    'get_policy_database',
    'load_config',
    'parse_expression',
    'reset_policy_databases',
    'resolve_config',
    'tokenize',
]
