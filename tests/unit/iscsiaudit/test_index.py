#!/usr/bin/env python3
"""
Unit tests for build_index.
"""

import unittest
import os
import sys

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../../')))

from iscsiaudit.index import build_index
from iscsiaudit.models import Association, Extent, Target


class TestBuildIndex(unittest.TestCase):
    """Test cases for the lookup indices."""

    def setUp(self):
        self.targets = [Target(1, 'pvc-a'), Target(2, 'pvc-b')]
        self.extents = [
            Extent(10, 'pvc-a', 'zvol/tank/k8s/pvc-a'),
            Extent(11, 'pvc-a-2', 'zvol/tank/k8s/pvc-a-2'),
            Extent(12, 'pvc-c', 'zvol/tank/k8s/pvc-c'),
        ]

    def test_lookups(self):
        index = build_index(self.targets, self.extents, [Association(100, 1, 10)])

        self.assertEqual(index.target_by_id[2].name, 'pvc-b')
        self.assertEqual(index.target_id_by_name, {'pvc-a': 1, 'pvc-b': 2})
        self.assertEqual(set(index.extent_by_id), {10, 11, 12})
        self.assertTrue(index.has_extent(1))
        self.assertFalse(index.has_extent(2))
        self.assertTrue(index.has_target(10))
        self.assertFalse(index.has_target(12))
        self.assertEqual(index.target_to_extent[1].id, 10)

    def test_last_association_wins(self):
        index = build_index(self.targets, self.extents, [
            Association(100, 1, 10),
            Association(101, 1, 11),
        ])

        self.assertEqual(index.target_to_extent[1].id, 11)
        self.assertEqual(index.extents_with_targets, {10, 11})

    def test_association_to_unknown_extent(self):
        """Both sides count as linked but no extent is mapped."""
        index = build_index(self.targets, self.extents, [Association(100, 2, 99)])

        self.assertTrue(index.has_extent(2))
        self.assertTrue(index.has_target(99))
        self.assertNotIn(2, index.target_to_extent)

    def test_empty(self):
        index = build_index([], [], [])
        self.assertEqual(index.target_by_id, {})
        self.assertEqual(index.targets_with_extents, set())


if __name__ == '__main__':
    unittest.main()
