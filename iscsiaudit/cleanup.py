#!/usr/bin/env python3
"""
Cleanup executor for orphaned targets without backing data.

Only targets are ever deleted. Extents and associations are reported by the
audit and left alone.
"""

import logging
from typing import Iterable, List, Optional

from .client import StorageControlAPI
from .models import CleanupFailure, CleanupSummary, TargetInfo


def cleanup_orphaned_targets(api: StorageControlAPI, targets: Iterable[TargetInfo], dry_run: bool = True,
                             logger: Optional[logging.Logger] = None) -> CleanupSummary:
    """
    Delete the given targets in order.

    A failed delete is logged and recorded and the batch continues; nothing
    is rolled back. In dry-run mode the API is never called and every target
    counts as an intended deletion.

    Args:
        api: Storage control API
        targets: Targets proven to have no extent and no dataset
        dry_run: Only report what would be deleted
        logger: Optional logger instance

    Returns:
        CleanupSummary with attempted/succeeded counts and failures
    """
    logger = logger or logging.getLogger(__name__)

    attempted = 0
    deleted: List[int] = []
    failures: List[CleanupFailure] = []

    for target in targets:
        attempted += 1

        if dry_run:
            logger.info(f"DRY RUN: Would delete target ID {target.id}: {target.name}")
            deleted.append(target.id)
            continue

        logger.info(f"Deleting target ID {target.id}: {target.name}")
        try:
            api.delete_target(target.id, force=True)
        except Exception as e:
            logger.error(f"Failed to delete target {target.name} (ID: {target.id}): {e}")
            failures.append(CleanupFailure(target_id=target.id, target_name=target.name, error=str(e)))
            continue

        logger.info(f"Successfully deleted target {target.name}")
        deleted.append(target.id)

    if dry_run:
        logger.info(f"Would delete {len(deleted)} orphaned targets")
    else:
        logger.info(f"Deleted {len(deleted)} of {attempted} orphaned targets")

    return CleanupSummary(
        attempted=attempted,
        succeeded=len(deleted),
        dry_run=dry_run,
        deleted_ids=tuple(deleted),
        failures=tuple(failures),
    )
