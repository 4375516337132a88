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

r"""License policy database: indices, lookups and the shared handle.

The database is built once from the ordered records of a policy file
and is read-only afterwards.

Key Concepts::

    ┌─────────────────────┬──────────────────────────────────────────────┐
    │ Concept             │ Plain-English                                │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ by_id               │ SPDX id -> records. The first one wins.      │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ by_family           │ Family key -> every record in that family,   │
    │                     │ including ids expanded from ``children``.    │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ Family conflict     │ Two records of one family with different     │
    │                     │ usage policies. Warned about (or raised      │
    │                     │ with ``strict_families``).                   │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ Fail open           │ A policy file that cannot be loaded yields   │
    │                     │ an empty database: every lookup UNDEFINED.   │
    └─────────────────────┴──────────────────────────────────────────────┘

Usage::

    from licensepolicy.database import get_policy_database

    db = get_policy_database()  # embedded default policy file
    db.find_by_id('Apache-2.0')  # PolicyMatch(usage_policy=ALLOW, record=...)
    db.find_by_family('GPL')  # first family key contained in the name
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field, replace
from typing import NamedTuple

from licensepolicy._types import LicensePolicyError, UsagePolicy
from licensepolicy.config import PolicyConfig, resolve_config
from licensepolicy.logging import get_logger
from licensepolicy.records import InvalidPolicyRecord, PolicyFile, PolicyLoadError, PolicyRecord, load, validate

__all__ = [
    'FamilyConflict',
    'FamilyConflictError',
    'PolicyDatabase',
    'PolicyMatch',
    'get_policy_database',
    'reset_policy_databases',
]

logger = get_logger(__name__)

# A family name containing any of these, even inside a word, is treated
# as an expression, not a key.
_EXPRESSION_KEYWORDS = ('AND', 'OR', 'WITH')


class PolicyMatch(NamedTuple):
    """Outcome of a policy lookup.

    Attributes:
        usage_policy: The verdict, ``UNDEFINED`` when nothing matched.
        record: The matching record, if any.
    """

    usage_policy: UsagePolicy
    record: PolicyRecord | None = None


_NO_MATCH = PolicyMatch(UsagePolicy.UNDEFINED, None)


@dataclass(frozen=True)
class FamilyConflict:
    """A record whose usage policy disagrees with its family.

    Attributes:
        family: The family key.
        id: The id of the incoming record (``""`` for a family entry).
        usage_policy: The incoming record's policy.
        existing: Distinct policies already recorded for the family.
    """

    family: str
    id: str
    usage_policy: UsagePolicy
    existing: tuple[UsagePolicy, ...]

    def __str__(self) -> str:
        """Describe the conflict in one line."""
        others = ', '.join(p.value for p in self.existing)
        return f'family {self.family!r}: {self.id or "(family entry)"} is {self.usage_policy.value}, family has {others}'


class FamilyConflictError(LicensePolicyError):
    """Raised by a strict build when a family conflict is found."""

    def __init__(self, conflict: FamilyConflict) -> None:
        self.conflict = conflict
        super().__init__(f'license policy conflict in {conflict}')


@dataclass
class PolicyDatabase:
    """Indexed, read-only view of a license policy file.

    Build with :meth:`build` or :meth:`from_policy_file`; never mutate
    the indices afterwards.

    Attributes:
        by_id: SPDX id to the records declaring it, in build order.
        by_family: Family key to its records, in build order.
        annotations: Annotation key to text.
        conflicts: Family conflicts seen during the build.
        skipped: Records (or raw entry labels) rejected by validation.
    """

    by_id: dict[str, list[PolicyRecord]] = field(default_factory=dict)
    by_family: dict[str, list[PolicyRecord]] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    conflicts: list[FamilyConflict] = field(default_factory=list)
    skipped: list[PolicyRecord | str] = field(default_factory=list)
    strict_families: bool = False
    _records: list[PolicyRecord] = field(default_factory=list, repr=False)

    # ── Building ─────────────────────────────────────────────────────

    @classmethod
    def build(
        cls,
        records: Iterable[PolicyRecord],
        *,
        annotations: dict[str, str] | None = None,
        strict_families: bool = False,
    ) -> PolicyDatabase:
        """Index *records* in order.

        Invalid records are skipped with a warning.  Family entries are
        expanded into one synthesized record per child id.

        Raises:
            FamilyConflictError: Only when *strict_families* is set and
                a family conflict is found.
        """
        db = cls(annotations=dict(annotations or {}), strict_families=strict_families)
        for record in records:
            db._add(record)  # noqa: SLF001
        logger.info(
            'policy_database_built',
            ids=len(db.by_id),
            families=len(db.by_family),
            skipped=len(db.skipped),
            conflicts=len(db.conflicts),
        )
        return db

    @classmethod
    def from_policy_file(cls, policy_file: PolicyFile, *, strict_families: bool = False) -> PolicyDatabase:
        """Model, validate and index the entries of a loaded policy file."""
        records: list[PolicyRecord] = []
        rejected: list[str] = []
        for entry in policy_file.entries:
            try:
                records.append(PolicyRecord.from_dict(entry))
            except InvalidPolicyRecord as exc:
                logger.warning('policy_record_skipped', reason=str(exc))
                rejected.append(str(entry.get('id') or entry.get('family') or '?'))
        db = cls.build(records, annotations=policy_file.annotations, strict_families=strict_families)
        db.skipped[:0] = rejected
        return db

    def _add(self, record: PolicyRecord) -> None:
        if not validate(record):
            self.skipped.append(record)
            return

        if record.id:
            logger.debug('policy_indexed_by_id', id=record.id, family=record.family)
            self.by_id.setdefault(record.id, []).append(record)

        existing = self.by_family.get(record.family, [])
        differing = tuple(dict.fromkeys(r.usage_policy for r in existing if r.usage_policy != record.usage_policy))
        if differing:
            self._on_family_conflict(
                FamilyConflict(
                    family=record.family,
                    id=record.id,
                    usage_policy=record.usage_policy,
                    existing=differing,
                )
            )

        self.by_family.setdefault(record.family, []).append(record)
        self._records.append(record)

        for child_id in record.children:
            # Children inherit everything but identity and family-level detail.
            child = replace(record, id=child_id, children=(), notes=(), urls=())
            self._add(child)

    def _on_family_conflict(self, conflict: FamilyConflict) -> None:
        """Single decision point for family conflicts."""
        if self.strict_families:
            raise FamilyConflictError(conflict)
        logger.warning(
            'policy_family_conflict',
            family=conflict.family,
            id=conflict.id,
            usage_policy=conflict.usage_policy,
            existing=[p.value for p in conflict.existing],
        )
        self.conflicts.append(conflict)

    # ── Queries ──────────────────────────────────────────────────────

    @property
    def is_empty(self) -> bool:
        """``True`` when no record was indexed (e.g. after a failed load)."""
        return not self._records

    def find_by_id(self, spdx_id: str) -> PolicyMatch:
        """Return the policy of the first record declaring *spdx_id*."""
        if not spdx_id:
            return _NO_MATCH
        matches = self.by_id.get(spdx_id)
        if not matches:
            logger.debug('policy_id_unmatched', id=spdx_id)
            return _NO_MATCH
        if len(matches) > 1:
            logger.warning('policy_id_duplicated', id=spdx_id, count=len(matches))
        record = matches[0]
        return PolicyMatch(record.usage_policy, record)

    def find_by_family(self, name: str) -> PolicyMatch:
        """Return the policy of the first family whose key occurs in *name*.

        Names that contain ``AND``, ``OR`` or ``WITH`` anywhere (case
        sensitive, so ``ANDROID`` counts) are taken for license
        expressions written into a name field and are never matched.

        A family whose records disagree still yields a definite verdict:
        its first record's policy.  The disagreement is logged as
        ``policy_family_lookup_conflict`` and is also listed on
        :attr:`conflicts` from the build.
        """
        if any(keyword in name for keyword in _EXPRESSION_KEYWORDS):
            logger.warning('policy_family_name_is_expression', name=name)
            return _NO_MATCH
        for family, records in self.by_family.items():
            if family in name:
                record = records[0]
                if any(r.usage_policy != record.usage_policy for r in records[1:]):
                    logger.warning('policy_family_lookup_conflict', family=family, name=name)
                return PolicyMatch(record.usage_policy, record)
        logger.debug('policy_family_unmatched', name=name)
        return _NO_MATCH

    def annotations_for(self, record: PolicyRecord) -> dict[str, str]:
        """Return the annotation texts referenced by *record*."""
        texts: dict[str, str] = {}
        for ref in record.annotation_refs:
            text = self.annotations.get(ref)
            if text is None:
                logger.debug('policy_annotation_unknown', id=record.id, ref=ref)
                continue
            texts[ref] = text
        return texts

    def policies(
        self,
        *,
        usage_policy: UsagePolicy | None = None,
        family: str | None = None,
    ) -> Iterator[PolicyRecord]:
        """Yield indexed records in build order, optionally filtered."""
        for record in self._records:
            if usage_policy is not None and record.usage_policy is not usage_policy:
                continue
            if family is not None and record.family != family:
                continue
            yield record


# ── Shared handle ─────────────────────────────────────────────────────

_databases: dict[PolicyConfig, PolicyDatabase] = {}
_build_lock = threading.Lock()


def get_policy_database(config: PolicyConfig | None = None) -> PolicyDatabase:
    """Return the process-wide database for *config*, building it once.

    The first caller for a given config loads and indexes the policy
    file under a lock; every other caller, on any thread, gets the same
    object.  A file that cannot be loaded is logged and replaced by an
    empty database, so lookups resolve to ``UNDEFINED`` instead of
    aborting the run.

    Args:
        config: Resolved settings; defaults to :func:`resolve_config`
            (env vars over the embedded policy file).

    Raises:
        FamilyConflictError: If ``config.strict_families`` is set and
            the policy file has a family conflict.
    """
    config = config if config is not None else resolve_config()
    db = _databases.get(config)
    if db is not None:
        return db
    with _build_lock:
        db = _databases.get(config)
        if db is None:
            db = _build(config)
            _databases[config] = db
    return db


def _build(config: PolicyConfig) -> PolicyDatabase:
    try:
        policy_file = load(config.policy_file)
    except PolicyLoadError as exc:
        logger.warning('policy_file_unavailable', error=str(exc), fallback='all lookups UNDEFINED')
        return PolicyDatabase(strict_families=config.strict_families)
    return PolicyDatabase.from_policy_file(policy_file, strict_families=config.strict_families)


def reset_policy_databases() -> None:
    """Forget every shared database (for tests)."""
    with _build_lock:
        _databases.clear()
