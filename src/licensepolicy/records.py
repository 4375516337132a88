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

"""Policy records: the rows of a license usage policy file.

A policy file is JSON::

    {
      "policies": [
        {
          "id": "Apache-2.0",
          "family": "Apache",
          "name": "Apache License 2.0",
          "usagePolicy": "allow",
          "osi": true, "fsf": true, "deprecated": false,
          "reference": "https://spdx.org/licenses/Apache-2.0.html",
          "aliases": [], "children": [], "notes": [], "urls": [],
          "annotationRefs": ["APPROVED"]
        }
      ],
      "annotations": {"APPROVED": "Approved for general use."}
    }

Loading is strict about the file envelope (a missing or malformed file
is a :class:`PolicyLoadError`) and lenient about individual entries:
an entry that fails :func:`validate` is skipped with a warning by the
database builder, never fatal.

A record with an empty ``id`` is a *family* entry: a named group whose
``children`` lists the SPDX ids that share its usage policy.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema

from licensepolicy._types import STORED_POLICIES, LicensePolicyError, UsagePolicy
from licensepolicy.logging import get_logger

__all__ = [
    'DEFAULT_POLICY_FILE',
    'InvalidPolicyRecord',
    'PolicyFile',
    'PolicyLoadError',
    'PolicyRecord',
    'is_valid_family_key',
    'is_valid_spdx_id',
    'load',
    'validate',
]

logger = get_logger(__name__)

_DATA_DIR = Path(__file__).resolve().parent / 'data'
DEFAULT_POLICY_FILE = _DATA_DIR / 'license_policy.json'
_ENVELOPE_SCHEMA = _DATA_DIR / 'policy_file.schema.json'

# SPDX idstring = 1*(ALPHA / DIGIT / "-" / ".")
_SPDX_ID_RE = re.compile(r'^[a-zA-Z0-9.-]+$')

# Values seen in the wild that are clearly not family names.
_RESERVED_FAMILY_WORDS = ('conflict', 'unknown')


class PolicyLoadError(LicensePolicyError):
    """Raised when a policy file cannot be located, read or decoded.

    Attributes:
        source: The file that failed, or ``None`` for the embedded default.
    """

    def __init__(self, source: Path | None, detail: str) -> None:
        self.source = source
        self.detail = detail
        where = str(source) if source is not None else f'embedded default ({DEFAULT_POLICY_FILE.name})'
        super().__init__(f'cannot load license policy file {where}: {detail}')


class InvalidPolicyRecord(LicensePolicyError):
    """Raised when a raw policy entry cannot be modelled as a record."""


@dataclass(frozen=True)
class PolicyRecord:
    """One usage policy entry.

    Attributes:
        id: SPDX identifier, or ``""`` for a family-only entry.
        family: Grouping key shared by related identifiers.
        usage_policy: ``ALLOW``, ``DENY`` or ``NEEDS_REVIEW``.
        name: Human-readable license name.
        reference: SPDX reference URL.
        osi_approved: OSI approval flag.
        fsf_libre: FSF "free/libre" flag.
        deprecated: Whether the SPDX id is deprecated.
        aliases: Alternative names.
        children: Ids that belong to this family entry.
        notes: Free-form notes about the family or license.
        urls: Related links.
        annotation_refs: Keys into the policy file's ``annotations``.
    """

    id: str
    family: str
    usage_policy: UsagePolicy
    name: str = ''
    reference: str = ''
    osi_approved: bool = False
    fsf_libre: bool = False
    deprecated: bool = False
    aliases: tuple[str, ...] = ()
    children: tuple[str, ...] = ()
    notes: tuple[str, ...] = ()
    urls: tuple[str, ...] = ()
    annotation_refs: tuple[str, ...] = ()

    @property
    def is_family_entry(self) -> bool:
        """``True`` for a family-only record (empty ``id``)."""
        return not self.id

    @classmethod
    def from_dict(cls, entry: dict[str, Any]) -> PolicyRecord:
        """Build a record from one entry of a policy file's ``policies`` list.

        Raises:
            InvalidPolicyRecord: If a field has the wrong JSON type or
                ``usagePolicy`` is not a storable value.
        """
        label = entry.get('id') or entry.get('family') or entry.get('name') or '?'
        try:
            usage_policy = UsagePolicy.parse(entry.get('usagePolicy'))
        except ValueError as exc:
            raise InvalidPolicyRecord(f'[{label}].usagePolicy: {exc}') from exc
        return cls(
            id=_string(entry, 'id', label),
            family=_string(entry, 'family', label),
            usage_policy=usage_policy,
            name=_string(entry, 'name', label),
            reference=_string(entry, 'reference', label),
            osi_approved=_flag(entry, 'osi', label),
            fsf_libre=_flag(entry, 'fsf', label),
            deprecated=_flag(entry, 'deprecated', label),
            aliases=_strings(entry, 'aliases', label),
            children=_strings(entry, 'children', label),
            notes=_strings(entry, 'notes', label),
            urls=_strings(entry, 'urls', label),
            annotation_refs=_strings(entry, 'annotationRefs', label),
        )


def _string(entry: dict[str, Any], key: str, label: str) -> str:
    value = entry.get(key)
    if value is None:
        return ''
    if not isinstance(value, str):
        raise InvalidPolicyRecord(f'[{label}].{key}: expected string, got {type(value).__name__}')
    return value


def _flag(entry: dict[str, Any], key: str, label: str) -> bool:
    value = entry.get(key, False)
    if not isinstance(value, bool):
        raise InvalidPolicyRecord(f'[{label}].{key}: expected bool, got {type(value).__name__}')
    return value


def _strings(entry: dict[str, Any], key: str, label: str) -> tuple[str, ...]:
    value = entry.get(key)
    if value is None:
        return ()
    if not isinstance(value, list):
        raise InvalidPolicyRecord(f'[{label}].{key}: expected list, got {type(value).__name__}')
    if not all(isinstance(v, str) for v in value):
        raise InvalidPolicyRecord(f'[{label}].{key}: all entries must be strings')
    return tuple(value)


@dataclass(frozen=True)
class PolicyFile:
    """Decoded policy file, before validation and indexing.

    Attributes:
        source: Where it was read from (``None`` for the embedded default).
        entries: Raw ``policies`` entries, in file order.
        annotations: Annotation key to text.
    """

    source: Path | None
    entries: tuple[dict[str, Any], ...]
    annotations: dict[str, str] = field(default_factory=dict)


def load(source: Path | None = None) -> PolicyFile:
    """Read a policy file, or the embedded default when *source* is ``None``.

    Raises:
        PolicyLoadError: If the file is missing, unreadable, not JSON, or
            its envelope does not match ``policy_file.schema.json``.
    """
    path = DEFAULT_POLICY_FILE if source is None else source
    if source is None:
        logger.info('policy_file_loading', path=str(path), embedded=True)
    else:
        if not path.is_file():
            raise PolicyLoadError(source, 'file not found')
        logger.info('policy_file_loading', path=str(path), embedded=False)

    try:
        data = json.loads(path.read_text(encoding='utf-8'))
    except OSError as exc:
        raise PolicyLoadError(source, f'unreadable: {exc}') from exc
    except json.JSONDecodeError as exc:
        raise PolicyLoadError(source, f'malformed JSON at line {exc.lineno}, column {exc.colno}: {exc.msg}') from exc

    violations = _envelope_violations(data)
    if violations:
        raise PolicyLoadError(source, '; '.join(violations))

    return PolicyFile(
        source=source,
        entries=tuple(data['policies']),
        annotations=dict(data.get('annotations') or {}),
    )


def _envelope_violations(data: Any) -> list[str]:  # noqa: ANN401
    schema = json.loads(_ENVELOPE_SCHEMA.read_text(encoding='utf-8'))
    validator = jsonschema.Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path))
    return [f'{".".join(str(p) for p in e.absolute_path) or "(root)"}: {e.message}' for e in errors]


def is_valid_spdx_id(value: str) -> bool:
    """Return ``True`` if *value* is a non-empty SPDX idstring."""
    return bool(_SPDX_ID_RE.match(value))


def is_valid_family_key(value: str) -> bool:
    """Return ``True`` if *value* can key a license family.

    Family keys follow the SPDX idstring shape and must not contain a
    reserved word (``conflict``, ``unknown``) in any letter case.
    """
    lowered = value.lower()
    if any(word in lowered for word in _RESERVED_FAMILY_WORDS):
        return False
    return is_valid_spdx_id(value)


def validate(record: PolicyRecord) -> bool:
    """Decide whether *record* may enter the policy database.

    Rejections are logged as warnings; the caller skips the record.
    """
    if record.id and not is_valid_spdx_id(record.id):
        logger.warning('policy_record_skipped', id=record.id, name=record.name, reason='invalid SPDX id')
        return False

    if not record.name.strip():
        logger.warning('policy_record_unnamed', id=record.id, family=record.family)

    if record.usage_policy not in STORED_POLICIES:
        logger.warning(
            'policy_record_skipped',
            id=record.id,
            name=record.name,
            reason=f'invalid usage policy {record.usage_policy.value!r}',
        )
        return False

    if not is_valid_family_key(record.family):
        logger.warning(
            'policy_record_skipped',
            id=record.id,
            name=record.name,
            reason=f'invalid family {record.family!r}',
        )
        return False

    if record.is_family_entry:
        if not record.children:
            logger.debug('policy_family_without_children', family=record.family)
        for child_id in record.children:
            if not is_valid_spdx_id(child_id):
                logger.warning('policy_child_invalid', family=record.family, child=child_id)

    return True
