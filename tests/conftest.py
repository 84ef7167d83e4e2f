#!/usr/bin/env python3
"""
Pytest configuration for iscsi-audit tests.

This file contains shared fixtures and configurations for unit tests.
"""

import os
import sys
import pytest
import logging
from unittest.mock import MagicMock

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../')))

from iscsiaudit.fake_client import InMemoryStorageAPI


PARENT_DATASET = 'tank/k8s'


@pytest.fixture
def mock_logger():
    """Fixture providing a mock logger that won't output during tests."""
    logger = MagicMock(spec=logging.Logger)
    return logger


@pytest.fixture
def audit_test_config():
    """Fixture providing a test configuration for ISCSIAuditComponent."""
    return {
        'component_id': 'iscsi-audit-test-component',
        'truenas_host': '192.168.2.245',
        'api_key': 'test-api-key',
        'parent_dataset': PARENT_DATASET,
        'cleanup': False,
        'dry_run': True
    }


@pytest.fixture
def healthy_api():
    """One target wired to one extent with a live zvol and one session."""
    return InMemoryStorageAPI(
        targets=[{'id': 1, 'name': 'pvc-a'}],
        extents=[{'id': 10, 'name': 'pvc-a', 'disk': 'zvol/tank/k8s/pvc-a', 'type': 'DISK'}],
        associations=[{'id': 100, 'target': 1, 'extent': 10}],
        sessions=[{'target': 'iqn.2005-10.org.freenas.ctl:pvc-a', 'initiator': 'iqn.1993-08.org.debian:01:node1'}],
        datasets={'tank/k8s/pvc-a'},
        volumes={'tank/k8s/pvc-a'},
    )


@pytest.fixture
def orphaned_api():
    """
    Mixed inventory:
        target 1 - healthy, one session
        target 2 - no extent, dataset still present
        target 3 - no extent, no dataset
        extent 20 - no target, zvol gone
    """
    return InMemoryStorageAPI(
        targets=[
            {'id': 1, 'name': 'pvc-a'},
            {'id': 2, 'name': 'pvc-b'},
            {'id': 3, 'name': 'pvc-c'},
        ],
        extents=[
            {'id': 10, 'name': 'pvc-a', 'disk': 'zvol/tank/k8s/pvc-a', 'type': 'DISK'},
            {'id': 20, 'name': 'pvc-d', 'disk': 'zvol/tank/k8s/pvc-d', 'type': 'DISK'},
        ],
        associations=[{'id': 100, 'target': 1, 'extent': 10}],
        sessions=[{'target': 1}],
        datasets={'tank/k8s/pvc-a', 'tank/k8s/pvc-b'},
        volumes={'tank/k8s/pvc-a'},
    )
