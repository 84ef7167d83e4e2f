"""
Components Package for the iSCSI audit

Components implement the discovery-processing-housekeeping pattern.
"""

from .audit_component import ISCSIAuditComponent
from .s3_component import S3ArtifactStore

__all__ = ['ISCSIAuditComponent', 'S3ArtifactStore']
