#!/usr/bin/env python3
"""
Audit and cleanup entry points.
"""

import logging
from typing import Optional

from .classifier import classify
from .cleanup import cleanup_orphaned_targets
from .client import StorageControlAPI
from .config import AuditConfig, DEFAULT_CONFIG
from .fetcher import FetchedResources, ResourceFetcher
from .index import build_index
from .models import AuditResult, CleanupSummary
from .prober import ExistenceProber
from .sessions import count_sessions


logger = logging.getLogger(__name__)


def audit_resources(api: StorageControlAPI, resources: FetchedResources, parent_dataset: str) -> AuditResult:
    """Index, resolve sessions for and classify already fetched resources."""
    index = build_index(resources.targets, resources.extents, resources.associations)
    session_counts = count_sessions(resources.sessions, index.target_id_by_name)
    logger.info(f"Found sessions for {len(session_counts)} targets")

    warnings = []
    if resources.session_error is not None:
        warnings.append(f"Failed to get sessions: {resources.session_error}")

    prober = ExistenceProber(api, parent_dataset)
    return classify(index, session_counts, prober, warnings=warnings)


def run_audit(api: StorageControlAPI, config: Optional[AuditConfig] = None) -> AuditResult:
    """
    Run a full audit.

    Args:
        api: Storage control API
        config: Audit configuration; only ``parent_dataset`` is used here

    Returns:
        AuditResult

    Raises:
        FetchError: If targets, extents or associations cannot be fetched
    """
    config = config or DEFAULT_CONFIG
    parent_dataset = config.get('parent_dataset', DEFAULT_CONFIG['parent_dataset'])
    logger.info(f"Auditing iSCSI resources (parent dataset: {parent_dataset})")

    resources = ResourceFetcher(api).fetch_all()
    return audit_resources(api, resources, parent_dataset)


def run_cleanup(api: StorageControlAPI, result: AuditResult,
                config: Optional[AuditConfig] = None) -> Optional[CleanupSummary]:
    """
    Delete the targets the audit proved to have no backing data.

    Returns:
        CleanupSummary, or None when cleanup is disabled in the configuration
    """
    config = config or DEFAULT_CONFIG
    if not config.get('cleanup', False):
        logger.debug("Cleanup disabled")
        return None

    dry_run = config.get('dry_run', True)
    if dry_run:
        logger.info("DRY RUN MODE - no changes will be made")

    return cleanup_orphaned_targets(api, result.orphaned_targets_without_dataset, dry_run=dry_run)
