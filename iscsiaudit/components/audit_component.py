#!/usr/bin/env python3
"""
iSCSI Audit Component for Discovery-Processing-Housekeeping Pattern

Audits iSCSI targets, extents, associations and sessions on TrueNAS:
    discover  - fetch and decode the four resource lists, count sessions
    process   - classify every target and extent
    housekeep - optionally delete orphaned targets without data, store the
                audit as an artifact
"""

import logging
from typing import Any, Dict, Optional

from ..audit import audit_resources, run_cleanup
from ..base_component import ArtifactStore, BaseComponent
from ..client import StorageControlAPI, TrueNASClient
from ..config import AuditConfig, DEFAULT_CONFIG, validate_config
from ..fetcher import FetchedResources, ResourceFetcher
from ..models import AuditResult, CleanupSummary


class ISCSIAuditComponent(BaseComponent):
    """
    Component for auditing iSCSI exports on TrueNAS.

    The storage control API can be passed in; otherwise a TrueNASClient is
    built from the configuration when discovery starts.
    """

    def __init__(self, config: AuditConfig, api: Optional[StorageControlAPI] = None,
                 logger: Optional[logging.Logger] = None,
                 artifact_store: Optional[ArtifactStore] = None) -> None:
        """
        Initialize the audit component.

        Args:
            config: Audit configuration, merged over DEFAULT_CONFIG
            api: Optional storage control API implementation
            logger: Optional logger instance
            artifact_store: Optional store for the audit artifacts
        """
        merged_config = validate_config(DEFAULT_CONFIG | config)
        super().__init__(merged_config, logger, artifact_store)

        self.api = api
        self.resources: Optional[FetchedResources] = None
        self.result: Optional[AuditResult] = None
        self.cleanup_summary: Optional[CleanupSummary] = None

        self.logger.info(f"ISCSIAuditComponent initialized for parent dataset {self.config['parent_dataset']}")

    def _setup_api(self) -> StorageControlAPI:
        """Build the TrueNAS client from the configuration"""
        self.logger.info("Setting up API session")
        return TrueNASClient(
            host=self.config['truenas_host'],
            api_key=self.config.get('api_key'),
            port=self.config.get('truenas_port'),
            use_https=self.config.get('use_https', True),
            ssl_verify=self.config.get('ssl_verify', False),
            timeout=self.config['timeout'],
            logger=self.logger,
        )

    def _discover(self) -> Dict[str, Any]:
        if self.api is None:
            self.api = self._setup_api()

        # FetchError propagates: the audit cannot continue without these lists
        self.resources = ResourceFetcher(self.api, self.logger).fetch_all()

        return {
            'targets': len(self.resources.targets),
            'extents': len(self.resources.extents),
            'associations': len(self.resources.associations),
            'sessions': len(self.resources.sessions),
            'session_error': self.resources.session_error,
        }

    def _process(self) -> Dict[str, Any]:
        self.result = audit_resources(self.api, self.resources, self.config['parent_dataset'])

        if self.result.total_issues:
            self.logger.warning("Found orphaned iSCSI resources that should be investigated")
        else:
            self.logger.info("No critical orphaned resources found")

        return {
            'targets_without_extents': len(self.result.targets_without_extents),
            'orphaned_targets_with_dataset': len(self.result.orphaned_targets_with_dataset),
            'orphaned_targets_without_dataset': len(self.result.orphaned_targets_without_dataset),
            'extents_without_targets': len(self.result.extents_without_targets),
            'orphaned_extents': len(self.result.orphaned_extents),
            'targets_without_connection': len(self.result.targets_without_connection),
            'probe_failures': len(self.result.probe_failures),
            'total_issues': self.result.total_issues,
        }

    def _housekeep(self) -> Dict[str, Any]:
        if self.result is None:
            raise RuntimeError("No audit result to act on; run the process phase first")

        results: Dict[str, Any] = {
            'cleanup_enabled': bool(self.config.get('cleanup', False)),
            'dry_run': bool(self.config.get('dry_run', True)),
        }

        if self.result.orphaned_targets_without_dataset:
            self.cleanup_summary = run_cleanup(self.api, self.result, self.config)
        elif results['cleanup_enabled']:
            self.logger.info("No orphaned targets without datasets to clean up")

        if self.cleanup_summary is not None:
            results |= {
                'cleanup_attempted': self.cleanup_summary.attempted,
                'cleanup_succeeded': self.cleanup_summary.succeeded,
                'cleanup_failed': self.cleanup_summary.failed,
            }

        self.add_artifact('iscsi_audit', self.result.to_dict(), {
            'parent_dataset': self.config['parent_dataset'],
            'total_issues': self.result.total_issues,
        })
        if self.cleanup_summary is not None:
            self.add_artifact('iscsi_cleanup', self.cleanup_summary.to_dict(), {
                'dry_run': self.cleanup_summary.dry_run,
            })

        return results
