#!/usr/bin/env python3
"""
Unit tests for the ExistenceProber.
"""

import unittest
import os
import sys

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../../')))

from iscsiaudit.errors import APIError, ProbeError
from iscsiaudit.fake_client import InMemoryStorageAPI
from iscsiaudit.models import Extent
from iscsiaudit.prober import ExistenceProber


class TestExistenceProber(unittest.TestCase):
    """Test cases for dataset and zvol probes."""

    def setUp(self):
        self.api = InMemoryStorageAPI(datasets={'tank/k8s/pvc-a'}, volumes={'tank/k8s/pvc-v'})
        self.prober = ExistenceProber(self.api, 'tank/k8s/')

    def test_dataset_path_strips_trailing_slash(self):
        self.assertEqual(self.prober.dataset_path('pvc-a'), 'tank/k8s/pvc-a')

    def test_dataset_exists(self):
        self.assertEqual(self.prober.dataset_exists('pvc-a'), (True, 'tank/k8s/pvc-a'))
        self.assertEqual(self.prober.dataset_exists('pvc-b'), (False, 'tank/k8s/pvc-b'))
        self.assertEqual(self.api.calls_to('query_exists_by_path')[0], ('dataset', 'tank/k8s/pvc-a'))

    def test_volume_exists(self):
        self.assertTrue(self.prober.volume_exists(Extent(1, 'pvc-v', 'zvol/tank/k8s/pvc-v')))
        self.assertFalse(self.prober.volume_exists(Extent(2, 'pvc-w', 'zvol/tank/k8s/pvc-w')))
        self.assertEqual(self.api.calls_to('query_exists_by_path')[0], ('volume', 'tank/k8s/pvc-v'))

    def test_volume_exists_rejects_non_zvol_extent(self):
        with self.assertRaises(ValueError):
            self.prober.volume_exists(Extent(3, 'file-lun', '', type='FILE'))

    def test_probe_failure_raises_probe_error(self):
        self.api.probe_errors['tank/k8s/pvc-a'] = APIError("HTTP Error on GET pool/dataset", 500)

        with self.assertRaises(ProbeError) as cm:
            self.prober.dataset_exists('pvc-a')

        self.assertEqual(cm.exception.path, 'tank/k8s/pvc-a')
        self.assertIsInstance(cm.exception.cause, APIError)

    def test_any_exception_becomes_probe_error(self):
        self.api.inject_errors['query_exists_by_path'] = TimeoutError("timed out")

        with self.assertRaises(ProbeError):
            self.prober.volume_exists(Extent(1, 'pvc-v', 'zvol/tank/k8s/pvc-v'))


if __name__ == '__main__':
    unittest.main()
