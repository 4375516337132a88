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

"""Configuration for the policy engine.

Two settings matter to the engine: which policy file to load and
whether a family conflict aborts the database build.  They come from,
highest priority first:

1. Explicit arguments (what an embedding CLI passes from its flags).
2. ``LICENSEPOLICY_FILE`` / ``LICENSEPOLICY_STRICT_FAMILIES`` env vars.
3. The ``[licensepolicy]`` table of a TOML config file.
4. Defaults: embedded policy file, warn-only family conflicts.

Usage::

    from licensepolicy.config import load_config, resolve_config

    base = load_config(Path('licensepolicy.toml'))
    config = resolve_config(base, policy_file=args.policy)

Example ``licensepolicy.toml``::

    [licensepolicy]
    policy_file = "policies/license-policy.json"
    strict_families = false
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, replace
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from licensepolicy._types import LicensePolicyError

__all__ = [
    'ConfigError',
    'PolicyConfig',
    'load_config',
    'resolve_config',
]

ENV_POLICY_FILE = 'LICENSEPOLICY_FILE'
ENV_STRICT_FAMILIES = 'LICENSEPOLICY_STRICT_FAMILIES'

_TABLE = 'licensepolicy'
_KNOWN_KEYS = frozenset({'policy_file', 'strict_families'})
_TRUTHY = ('1', 'true', 'yes', 'on')


class ConfigError(LicensePolicyError):
    """Raised when a TOML config file cannot be read or is malformed."""


@dataclass(frozen=True)
class PolicyConfig:
    """Resolved engine settings.

    Attributes:
        policy_file: Policy JSON to load, or ``None`` for the embedded
            default.
        strict_families: Raise on a family conflict instead of warning.
    """

    policy_file: Path | None = None
    strict_families: bool = False


def load_config(path: Path | None = None) -> PolicyConfig:
    """Read the ``[licensepolicy]`` table of a TOML file.

    A missing *path* (or ``None``) gives the defaults.  A relative
    ``policy_file`` is resolved against the TOML file's directory.

    Raises:
        ConfigError: On unreadable TOML, unknown keys, or wrong types.
    """
    if path is None or not path.is_file():
        return PolicyConfig()
    try:
        with path.open('rb') as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f'cannot read config file {path}: {exc}') from exc

    table = data.get(_TABLE, {})
    if not isinstance(table, dict):
        raise ConfigError(f'[{_TABLE}] in {path} must be a table')
    unknown = sorted(set(table) - _KNOWN_KEYS)
    if unknown:
        raise ConfigError(f'unknown key(s) in [{_TABLE}] of {path}: {", ".join(unknown)}')

    policy_file: Path | None = None
    raw_file = table.get('policy_file')
    if raw_file is not None:
        if not isinstance(raw_file, str) or not raw_file.strip():
            raise ConfigError(f'[{_TABLE}].policy_file in {path} must be a non-empty string')
        policy_file = Path(raw_file)
        if not policy_file.is_absolute():
            policy_file = path.parent / policy_file

    strict = table.get('strict_families', False)
    if not isinstance(strict, bool):
        raise ConfigError(f'[{_TABLE}].strict_families in {path} must be a boolean')

    return PolicyConfig(policy_file=policy_file, strict_families=strict)


def resolve_config(
    base: PolicyConfig | None = None,
    *,
    policy_file: Path | str | None = None,
    strict_families: bool | None = None,
) -> PolicyConfig:
    """Layer env vars and explicit arguments over *base*.

    Args:
        base: Settings from :func:`load_config` (defaults if ``None``).
        policy_file: Explicit policy file, e.g. from a ``--policy`` flag.
        strict_families: Explicit family-conflict mode.

    Returns:
        Resolved :class:`PolicyConfig`.
    """
    config = base or PolicyConfig()
    resolved_file = config.policy_file
    strict = config.strict_families

    env_file = os.environ.get(ENV_POLICY_FILE, '').strip()
    if env_file:
        resolved_file = Path(env_file)

    env_strict = os.environ.get(ENV_STRICT_FAMILIES, '').strip().lower()
    if env_strict:
        strict = env_strict in _TRUTHY

    if policy_file:
        resolved_file = Path(policy_file)
    if strict_families is not None:
        strict = strict_families

    return replace(config, policy_file=resolved_file, strict_families=strict)
