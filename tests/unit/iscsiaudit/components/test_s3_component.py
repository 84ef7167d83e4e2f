#!/usr/bin/env python3
"""
Unit tests for the S3ArtifactStore class.
"""

import unittest
import logging
import json
import os
import sys
from unittest.mock import patch, MagicMock

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../../../')))

from iscsiaudit.components.s3_component import S3ArtifactStore
from iscsiaudit.errors import ConfigError


class TestS3ArtifactStore(unittest.TestCase):
    """Test cases for the S3ArtifactStore class."""

    def setUp(self):
        """Set up test fixtures."""
        logging.basicConfig(level=logging.CRITICAL)

        self.s3_client_patch = patch('iscsiaudit.components.s3_component.boto3.client')
        self.mock_s3_client = self.s3_client_patch.start()
        self.mock_client = MagicMock()
        self.mock_s3_client.return_value = self.mock_client

        self.artifact = {
            'id': 'artifact-001',
            'type': 'iscsi_audit',
            'content': {'total_issues': 2, 'session_counts': {'1': 1}},
            'metadata': {
                'artifact_id': 'artifact-001',
                'artifact_type': 'iscsi_audit',
                'total_issues': 2,
                'dry_run': True,
            }
        }

    def tearDown(self):
        self.s3_client_patch.stop()

    def test_requires_bucket(self):
        with self.assertRaises(ConfigError):
            S3ArtifactStore('')

    def test_from_config_without_bucket(self):
        self.assertIsNone(S3ArtifactStore.from_config({'artifact_bucket': None}))

    def test_from_config(self):
        store = S3ArtifactStore.from_config({
            'artifact_bucket': 'audit-reports',
            's3_endpoint': 'minio.lab.local:9000',
            's3_access_key': 'test-access-key',
            's3_secret_key': 'test-secret-key',
        })

        self.assertEqual(store.bucket, 'audit-reports')
        self.assertEqual(store.endpoint, 'minio.lab.local:9000')

    def test_client_is_lazy(self):
        S3ArtifactStore('audit-reports', endpoint='minio.lab.local:9000')
        self.mock_s3_client.assert_not_called()

    def test_client_for_custom_endpoint(self):
        store = S3ArtifactStore('audit-reports', endpoint='minio.lab.local:9000',
                                access_key='test-access-key', secret_key='test-secret-key', secure=False)

        self.assertIs(store.client, self.mock_client)

        self.mock_s3_client.assert_called_once_with(
            's3',
            endpoint_url='http://minio.lab.local:9000',
            region_name='us-east-1',
            aws_access_key_id='test-access-key',
            aws_secret_access_key='test-secret-key',
        )

    def test_client_for_default_endpoint(self):
        store = S3ArtifactStore('audit-reports')
        store.client

        self.mock_s3_client.assert_called_once_with('s3')

    def test_store_artifact(self):
        store = S3ArtifactStore('audit-reports')

        location = store.store_artifact(self.artifact)

        self.mock_client.put_object.assert_called_once()
        kwargs = self.mock_client.put_object.call_args.kwargs
        self.assertEqual(kwargs['Bucket'], 'audit-reports')
        self.assertTrue(kwargs['Key'].startswith('iscsi-audit/iscsi_audit/'))
        self.assertTrue(kwargs['Key'].endswith('_artifact-001.json'))
        self.assertEqual(kwargs['ContentType'], 'application/json')
        self.assertEqual(json.loads(kwargs['Body']), self.artifact['content'])
        self.assertEqual(kwargs['Metadata']['total_issues'], '2')
        self.assertEqual(kwargs['Metadata']['dry_run'], 'True')
        self.assertEqual(location, f"s3://audit-reports/{kwargs['Key']}")

    def test_object_key_layout(self):
        key = S3ArtifactStore('audit-reports').object_key(self.artifact)
        self.assertRegex(key, r'^iscsi-audit/iscsi_audit/\d{14}_artifact-001\.json$')

    def test_store_artifact_propagates_errors(self):
        self.mock_client.put_object.side_effect = RuntimeError("NoSuchBucket")
        store = S3ArtifactStore('audit-reports')

        with self.assertRaises(RuntimeError):
            store.store_artifact(self.artifact)


if __name__ == '__main__':
    unittest.main()
