#!/usr/bin/env python3
"""
Tests for run_audit and run_cleanup against the in-memory API.

Uses the inventories defined in conftest.py.
"""

import os
import sys

import pytest

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../../')))

from iscsiaudit import run_audit, run_cleanup
from iscsiaudit.errors import APIError, FetchError


def test_healthy_inventory_has_no_issues(healthy_api, audit_test_config):
    result = run_audit(healthy_api, audit_test_config)

    assert result.total_issues == 0
    assert result.session_counts == {1: 1}
    assert result.targets_without_connection == ()
    assert result.warnings == ()


def test_orphaned_inventory(orphaned_api, audit_test_config):
    result = run_audit(orphaned_api, audit_test_config)

    assert [t.id for t in result.targets_without_extents] == [2, 3]
    assert [t.id for t in result.orphaned_targets_with_dataset] == [2]
    assert [t.id for t in result.orphaned_targets_without_dataset] == [3]
    assert [e.id for e in result.extents_without_targets] == [20]
    assert [e.id for e in result.orphaned_extents] == [20]
    assert [c.target.id for c in result.targets_without_connection] == [2, 3]
    assert result.total_issues == 4


def test_audit_makes_no_changes(orphaned_api, audit_test_config):
    run_audit(orphaned_api, audit_test_config)

    assert orphaned_api.calls_to('delete_target') == []
    assert set(orphaned_api.targets) == {1, 2, 3}


def test_session_failure_becomes_warning(orphaned_api, audit_test_config):
    orphaned_api.inject_errors['list_sessions'] = APIError("HTTP Error", 503)

    result = run_audit(orphaned_api, audit_test_config)

    assert result.session_counts == {}
    assert result.warnings[0] == "Failed to get sessions: HTTP Error"
    # Without sessions every target looks unconnected
    assert [c.target.id for c in result.targets_without_connection] == [1, 2, 3]


@pytest.mark.parametrize('operation', ['list_targets', 'list_extents', 'list_associations'])
def test_primary_fetch_failure_aborts(orphaned_api, audit_test_config, operation):
    orphaned_api.inject_errors[operation] = APIError("HTTP Error", 500)

    with pytest.raises(FetchError):
        run_audit(orphaned_api, audit_test_config)

    assert orphaned_api.calls_to('query_exists_by_path') == []


def test_run_audit_default_parent_dataset(orphaned_api):
    result = run_audit(orphaned_api)

    # tank/k8s-csi holds none of the fixture datasets
    assert [t.id for t in result.orphaned_targets_without_dataset] == [2, 3]


def test_cleanup_disabled(orphaned_api, audit_test_config):
    result = run_audit(orphaned_api, audit_test_config)

    assert run_cleanup(orphaned_api, result, audit_test_config) is None
    assert orphaned_api.calls_to('delete_target') == []


def test_cleanup_dry_run(orphaned_api, audit_test_config):
    config = audit_test_config | {'cleanup': True}
    result = run_audit(orphaned_api, config)

    summary = run_cleanup(orphaned_api, result, config)

    assert summary.dry_run
    assert summary.deleted_ids == (3,)
    assert orphaned_api.calls_to('delete_target') == []


def test_cleanup_deletes_only_targets_without_data(orphaned_api, audit_test_config):
    config = audit_test_config | {'cleanup': True, 'dry_run': False}
    result = run_audit(orphaned_api, config)

    summary = run_cleanup(orphaned_api, result, config)

    assert (summary.attempted, summary.succeeded, summary.failed) == (1, 1, 0)
    assert orphaned_api.calls_to('delete_target') == [(3, True)]
    assert set(orphaned_api.targets) == {1, 2}
    assert len(orphaned_api.extents) == 2


def test_cleanup_is_idempotent(orphaned_api, audit_test_config):
    config = audit_test_config | {'cleanup': True, 'dry_run': False}
    run_cleanup(orphaned_api, run_audit(orphaned_api, config), config)

    second = run_cleanup(orphaned_api, run_audit(orphaned_api, config), config)

    assert second.attempted == 0


def test_malformed_session_keeps_other_sessions(orphaned_api, audit_test_config):
    orphaned_api.list_sessions = lambda: [{'target': 1}, 'garbage']

    result = run_audit(orphaned_api, audit_test_config)

    assert result.session_counts == {1: 1}
    assert result.warnings == ()
    assert [c.target.id for c in result.targets_without_connection] == [2, 3]


def test_untagged_extent_skips_zvol_lookup(orphaned_api, audit_test_config):
    orphaned_api.extents.append({'id': 30, 'name': 'pvc-u', 'disk': 'zvol/tank/k8s/pvc-u'})

    result = run_audit(orphaned_api, audit_test_config)

    assert 30 not in [e.id for e in result.orphaned_extents]
    assert ('volume', 'tank/k8s/pvc-u') not in orphaned_api.calls_to('query_exists_by_path')
