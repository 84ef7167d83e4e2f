#!/usr/bin/env python3
"""
S3 artifact store for audit reports.

Audit and cleanup results registered as artifacts are uploaded as JSON
objects to a single bucket, keyed by artifact type and timestamp.
"""

import json
import logging
import datetime
from typing import Any, Dict, Optional

import boto3

from ..base_component import Artifact
from ..errors import ConfigError


class S3ArtifactStore:
    """
    Uploads artifacts to an S3-compatible bucket.

    The boto3 client is created lazily on first upload so that an audit can
    run with a store configured but never reaching S3 when it has nothing to
    store.
    """

    KEY_PREFIX = "iscsi-audit"

    def __init__(self, bucket: str, endpoint: Optional[str] = None, access_key: Optional[str] = None,
                 secret_key: Optional[str] = None, secure: bool = True, client: Any = None,
                 logger: Optional[logging.Logger] = None) -> None:
        """
        Initialize the artifact store.

        Args:
            bucket: Destination bucket
            endpoint: S3 endpoint host (None uses the AWS default)
            access_key: S3 access key
            secret_key: S3 secret key
            secure: Use HTTPS for a custom endpoint
            client: Pre-built boto3 S3 client
            logger: Optional logger instance
        """
        if not bucket:
            raise ConfigError("An artifact bucket is required for S3 artifact storage")

        self.bucket = bucket
        self.endpoint = endpoint
        self.access_key = access_key
        self.secret_key = secret_key
        self.secure = secure
        self._client = client
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    @classmethod
    def from_config(cls, config: Dict[str, Any], logger: Optional[logging.Logger] = None) -> Optional["S3ArtifactStore"]:
        """Build a store from an AuditConfig, or None when no bucket is configured."""
        if not (bucket := config.get('artifact_bucket')):
            return None
        return cls(
            bucket=bucket,
            endpoint=config.get('s3_endpoint'),
            access_key=config.get('s3_access_key'),
            secret_key=config.get('s3_secret_key'),
            logger=logger,
        )

    @property
    def client(self) -> Any:
        if self._client is None:
            kwargs: Dict[str, Any] = {}
            if self.endpoint:
                endpoint = self.endpoint
                if "://" not in endpoint:
                    endpoint = f"{'https' if self.secure else 'http'}://{endpoint}"
                kwargs['endpoint_url'] = endpoint
                # Dummy region for S3-compatible endpoints
                kwargs['region_name'] = 'us-east-1'
            if self.access_key and self.secret_key:
                kwargs['aws_access_key_id'] = self.access_key
                kwargs['aws_secret_access_key'] = self.secret_key

            self._client = boto3.client('s3', **kwargs)
            self.logger.debug(f"Created S3 client for endpoint {self.endpoint or 'default'}")
        return self._client

    def object_key(self, artifact: Artifact) -> str:
        timestamp = datetime.datetime.now().strftime("%Y%m%d%H%M%S")
        return f"{self.KEY_PREFIX}/{artifact['type']}/{timestamp}_{artifact['id']}.json"

    def store_artifact(self, artifact: Artifact) -> str:
        """
        Upload one artifact as a JSON object.

        Returns:
            ``s3://bucket/key`` location of the uploaded object
        """
        key = self.object_key(artifact)
        self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=json.dumps(artifact['content'], indent=2, default=str),
            ContentType='application/json',
            Metadata={k: str(v) for k, v in artifact['metadata'].items()}
        )
        self.logger.info(f"Uploaded JSON artifact {artifact['id']} to {key}")
        return f"s3://{self.bucket}/{key}"
