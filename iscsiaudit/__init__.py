"""
iSCSI audit for TrueNAS

Cross-checks iSCSI targets, extents, target-extent associations and active
sessions, reports orphaned resources and optionally deletes targets that
have neither an extent nor a backing dataset.
"""

__version__ = "0.1.0"

from .audit import run_audit, run_cleanup
from .base_component import BaseComponent
from .client import StorageControlAPI, TrueNASClient
from .models import AuditResult, CleanupSummary

__all__ = [
    'AuditResult',
    'BaseComponent',
    'CleanupSummary',
    'StorageControlAPI',
    'TrueNASClient',
    'run_audit',
    'run_cleanup',
]
