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

"""Tests for policy records: modelling, loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest
from licensepolicy._types import STORED_POLICIES, LicensePolicyError, UsagePolicy
from licensepolicy.records import (
    DEFAULT_POLICY_FILE,
    InvalidPolicyRecord,
    PolicyLoadError,
    PolicyRecord,
    is_valid_family_key,
    is_valid_spdx_id,
    load,
    validate,
)
from structlog.testing import capture_logs

_DATA = Path(__file__).parent / 'data'


class TestUsagePolicy:
    """Tests for UsagePolicy."""

    @pytest.mark.parametrize(
        'raw,expected',
        [
            ('allow', UsagePolicy.ALLOW),
            ('deny', UsagePolicy.DENY),
            ('needs-review', UsagePolicy.NEEDS_REVIEW),
        ],
    )
    def test_parse_stored_values(self, raw: str, expected: UsagePolicy) -> None:
        """Test parse stored values."""
        assert UsagePolicy.parse(raw) is expected

    @pytest.mark.parametrize('raw', ['UNDEFINED', 'Allow', 'needs_review', '', None, 1])
    def test_parse_rejects_everything_else(self, raw: object) -> None:
        """Test parse rejects everything else."""
        with pytest.raises(ValueError, match='invalid usage policy'):
            UsagePolicy.parse(raw)

    def test_undefined_is_not_storable(self) -> None:
        """Test undefined is not storable."""
        assert UsagePolicy.UNDEFINED not in STORED_POLICIES
        assert not UsagePolicy.UNDEFINED.is_defined
        assert UsagePolicy.DENY.is_defined

    def test_str(self) -> None:
        """Test str."""
        assert str(UsagePolicy.NEEDS_REVIEW) == 'needs-review'


class TestSpdxIds:
    """Tests for is_valid_spdx_id()."""

    @pytest.mark.parametrize('value', ['MIT', 'Apache-2.0', 'AGPL-3.0-or-later', '0BSD', 'BSD-3-Clause-LBNL'])
    def test_valid(self, value: str) -> None:
        """Test valid."""
        assert is_valid_spdx_id(value)

    @pytest.mark.parametrize('value', ['', '?', 'MIT+Apache-2.0', 'Apache 2.0', 'GPL-2.0+', 'MIT/X11', '(MIT)'])
    def test_invalid(self, value: str) -> None:
        """Test invalid."""
        assert not is_valid_spdx_id(value)


class TestFamilyKeys:
    """Tests for is_valid_family_key()."""

    @pytest.mark.parametrize('value', ['GPL', 'BSD-3-Clause', 'CC-BY-SA', 'MIT'])
    def test_valid(self, value: str) -> None:
        """Test valid."""
        assert is_valid_family_key(value)

    @pytest.mark.parametrize('value', ['', 'Unknown', 'unknown-1.0', 'CONFLICT', 'Family-Conflict', 'Has Space'])
    def test_invalid(self, value: str) -> None:
        """Test invalid."""
        assert not is_valid_family_key(value)


class TestPolicyRecordFromDict:
    """Tests for PolicyRecord.from_dict()."""

    def test_full_entry(self) -> None:
        """Test full entry."""
        record = PolicyRecord.from_dict({
            'id': 'Apache-2.0',
            'family': 'Apache',
            'name': 'Apache License 2.0',
            'usagePolicy': 'allow',
            'osi': True,
            'fsf': True,
            'deprecated': False,
            'reference': 'https://spdx.org/licenses/Apache-2.0.html',
            'aliases': ['ASL 2.0'],
            'annotationRefs': ['APPROVED'],
        })
        assert record.id == 'Apache-2.0'
        assert record.usage_policy is UsagePolicy.ALLOW
        assert record.osi_approved
        assert record.fsf_libre
        assert not record.deprecated
        assert record.aliases == ('ASL 2.0',)
        assert record.annotation_refs == ('APPROVED',)
        assert record.children == ()
        assert not record.is_family_entry

    def test_family_entry(self) -> None:
        """Test family entry."""
        record = PolicyRecord.from_dict({
            'id': '',
            'family': 'GPL',
            'usagePolicy': 'deny',
            'children': ['GPL-2.0-only', 'GPL-3.0-only'],
        })
        assert record.is_family_entry
        assert record.children == ('GPL-2.0-only', 'GPL-3.0-only')
        assert record.name == ''

    @pytest.mark.parametrize(
        'entry,match',
        [
            ({'id': 'X', 'family': 'X', 'usagePolicy': 'maybe'}, 'usagePolicy'),
            ({'id': 'X', 'family': 'X'}, 'usagePolicy'),
            ({'id': 'X', 'family': 'X', 'usagePolicy': 'allow', 'osi': 'yes'}, 'osi'),
            ({'id': 'X', 'family': 'X', 'usagePolicy': 'allow', 'children': 'Y'}, 'children'),
            ({'id': 'X', 'family': 'X', 'usagePolicy': 'allow', 'urls': [1]}, 'urls'),
            ({'id': 7, 'family': 'X', 'usagePolicy': 'allow'}, 'id'),
        ],
    )
    def test_rejects_bad_types(self, entry: dict[str, object], match: str) -> None:
        """Test rejects bad types."""
        with pytest.raises(InvalidPolicyRecord, match=match):
            PolicyRecord.from_dict(entry)


class TestLoad:
    """Tests for load()."""

    def test_default_file(self) -> None:
        """Test default file."""
        policy_file = load()
        assert policy_file.source is None
        assert policy_file.entries
        assert 'APPROVED' in policy_file.annotations
        assert DEFAULT_POLICY_FILE.is_file()

    def test_explicit_file(self) -> None:
        """Test explicit file."""
        policy_file = load(_DATA / 'good_bad_maybe.json')
        assert [e['id'] for e in policy_file.entries] == ['Good', 'Bad', 'Maybe']
        assert policy_file.annotations == {'OK': 'Fine to use.'}

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test missing file."""
        with pytest.raises(PolicyLoadError, match='file not found') as exc_info:
            load(tmp_path / 'nope.json')
        assert exc_info.value.source == tmp_path / 'nope.json'

    def test_malformed_json(self) -> None:
        """Test malformed json."""
        with pytest.raises(PolicyLoadError, match='malformed JSON'):
            load(_DATA / 'malformed.json')

    def test_bad_envelope(self) -> None:
        """Test bad envelope."""
        with pytest.raises(PolicyLoadError, match='policies'):
            load(_DATA / 'bad_envelope.json')

    def test_missing_policies_key(self, tmp_path: Path) -> None:
        """Test missing policies key."""
        path = tmp_path / 'empty.json'
        path.write_text('{}', encoding='utf-8')
        with pytest.raises(PolicyLoadError, match='policies'):
            load(path)

    def test_error_is_a_license_policy_error(self, tmp_path: Path) -> None:
        """Test error is a license policy error."""
        with pytest.raises(LicensePolicyError):
            load(tmp_path / 'nope.json')


def _record(**overrides: object) -> PolicyRecord:
    fields: dict[str, object] = {'id': 'MIT', 'family': 'MIT', 'usage_policy': UsagePolicy.ALLOW, 'name': 'MIT License'}
    fields.update(overrides)
    return PolicyRecord(**fields)  # type: ignore[arg-type]


class TestValidate:
    """Tests for validate()."""

    def test_valid_record(self) -> None:
        """Test valid record."""
        assert validate(_record())

    def test_invalid_id(self) -> None:
        """Test invalid id."""
        with capture_logs() as logs:
            assert not validate(_record(id='Apache 2.0'))
        assert logs[0]['event'] == 'policy_record_skipped'
        assert logs[0]['reason'] == 'invalid SPDX id'

    def test_undefined_usage_policy(self) -> None:
        """Test undefined usage policy."""
        with capture_logs() as logs:
            assert not validate(_record(usage_policy=UsagePolicy.UNDEFINED))
        assert 'invalid usage policy' in logs[0]['reason']

    def test_reserved_family(self) -> None:
        """Test reserved family."""
        assert not validate(_record(family='Unknown'))

    def test_missing_family(self) -> None:
        """Test missing family."""
        assert not validate(_record(family=''))

    def test_blank_name_warns_but_passes(self) -> None:
        """Test blank name warns but passes."""
        with capture_logs() as logs:
            assert validate(_record(name='  '))
        assert [e['event'] for e in logs] == ['policy_record_unnamed']

    def test_family_entry_with_children(self) -> None:
        """Test family entry with children."""
        assert validate(_record(id='', family='GPL', children=('GPL-2.0-only',)))

    def test_family_entry_with_invalid_child(self) -> None:
        """Test family entry with invalid child."""
        with capture_logs() as logs:
            assert validate(_record(id='', family='GPL', children=('GPL 2',)))
        assert any(e['event'] == 'policy_child_invalid' for e in logs)
