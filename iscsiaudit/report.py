#!/usr/bin/env python3
"""
Text rendering of audit results, cleanup summaries and raw session dumps.
"""

from typing import Any, Iterable, List, Mapping

from .models import AuditResult, CleanupSummary


RULE = "========================================"


def _header(title: str) -> List[str]:
    return [RULE, f"{title:^40}".rstrip(), RULE, ""]


def render_audit_report(result: AuditResult, cleanup_hint: str = "--cleanup --no-dry-run") -> str:
    """
    Render an audit result as a human readable report.

    Args:
        result: Audit result to render
        cleanup_hint: Command-line flags shown in the cleanup suggestion

    Returns:
        Multi-line report text
    """
    lines = _header("iSCSI AUDIT RESULTS")

    # 1. Targets without extents
    lines.append("TARGETS WITHOUT EXTENTS (incomplete setup):")
    lines.append("   These targets have no associated storage extent.")
    lines.append("")
    if not result.targets_without_extents:
        lines.append("   None found")
    else:
        if result.orphaned_targets_with_dataset:
            lines.append(f"   WITH DATASET ({len(result.orphaned_targets_with_dataset)}) - extent creation may have failed:")
            lines.append("   (These may be recoverable - the zvol exists but extent wasn't created)")
            for t in result.orphaned_targets_with_dataset:
                lines.append(f"     - ID: {t.id}, Name: {t.name}")
                lines.append(f"       Dataset: {t.dataset_path} (EXISTS)")
            lines.append("")

        if result.orphaned_targets_without_dataset:
            lines.append(f"   WITHOUT DATASET ({len(result.orphaned_targets_without_dataset)}) - SAFE TO DELETE:")
            lines.append("   (These are completely orphaned - no data associated)")
            for t in result.orphaned_targets_without_dataset:
                lines.append(f"     - ID: {t.id}, Name: {t.name}")
            lines.append("")
            lines.append(f"   Run with {cleanup_hint} to delete these orphaned targets")

        unchecked = [t for t in result.targets_without_extents if t.has_dataset is None]
        if unchecked:
            lines.append(f"   DATASET UNKNOWN ({len(unchecked)}) - check failed, not eligible for cleanup:")
            for t in unchecked:
                lines.append(f"     - ID: {t.id}, Name: {t.name}, Dataset: {t.dataset_path}")
    lines.append("")

    # 2. Extents without targets
    lines.append("EXTENTS WITHOUT TARGETS (orphaned extents):")
    lines.append("   These extents are not associated with any target.")
    lines.append("   They consume storage but are inaccessible via iSCSI.")
    lines.append("")
    if not result.extents_without_targets:
        lines.append("   None found")
    for e in result.extents_without_targets:
        lines.append(f"   - ID: {e.id}, Name: {e.name}, Disk: {e.disk}")
    lines.append("")

    # 3. Extents pointing at missing zvols
    lines.append("EXTENTS WITH MISSING ZVOLS (broken extents):")
    lines.append("   These extents reference zvols that no longer exist.")
    lines.append("")
    if not result.orphaned_extents:
        lines.append("   None found")
    for e in result.orphaned_extents:
        lines.append(f"   - ID: {e.id}, Name: {e.name}, Missing zvol: {e.disk}")
    lines.append("")

    # 4. Targets without sessions
    lines.append("TARGETS WITHOUT ACTIVE CONNECTIONS:")
    lines.append("   These targets have no active iSCSI sessions.")
    lines.append("   This may be normal (unused volumes) or indicate orphaned resources.")
    lines.append("")
    if not result.targets_without_connection:
        lines.append("   None found (all targets have active connections)")
    else:
        without_extent = [t for t in result.targets_without_connection if not t.has_extent]
        with_extent = [t for t in result.targets_without_connection if t.has_extent]
        if without_extent:
            lines.append("   Without extent (definitely orphaned):")
            for t in without_extent:
                lines.append(f"     - ID: {t.target.id}, Name: {t.target.name}")
            lines.append("")
        if with_extent:
            lines.append("   With extent but no sessions (may be unused):")
            for t in with_extent:
                lines.append(f"     - ID: {t.target.id}, Name: {t.target.name}")
                if t.extent is not None:
                    lines.append(f"       Extent: {t.extent.name} -> {t.extent.disk}")
    lines.append("")

    if result.warnings:
        lines.append("WARNINGS:")
        lines.extend(f"   - {w}" for w in result.warnings)
        lines.append("")

    lines.extend(_header("SUMMARY")[:-1])
    lines.append(f"Targets without extents:        {len(result.targets_without_extents)}")
    lines.append(f"  - With dataset (investigate):  {len(result.orphaned_targets_with_dataset)}")
    lines.append(f"  - Without dataset (delete):    {len(result.orphaned_targets_without_dataset)}")
    lines.append(f"Extents without targets:        {len(result.extents_without_targets)}")
    lines.append(f"Extents with missing zvols:     {len(result.orphaned_extents)}")
    lines.append(f"Targets without connections:    {len(result.targets_without_connection)}")
    lines.append(f"Failed existence checks:        {len(result.probe_failures)}")

    lines.append("")
    if result.total_issues:
        lines.append("Found orphaned iSCSI resources that should be investigated!")
    else:
        lines.append("No critical orphaned resources found")

    return "\n".join(lines)


def render_cleanup_summary(summary: CleanupSummary) -> str:
    """Render a cleanup summary."""
    lines = _header("CLEANUP ORPHANED TARGETS")
    if summary.dry_run:
        lines.append("DRY RUN MODE - no changes were made")
        lines.append(f"Would delete {summary.succeeded} orphaned targets")
        return "\n".join(lines)

    lines.append(f"Deleted {summary.succeeded} of {summary.attempted} orphaned targets")
    for failure in summary.failures:
        lines.append(f"  FAILED: ID {failure.target_id} ({failure.target_name}): {failure.error}")
    return "\n".join(lines)


def render_raw_sessions(records: Iterable[Any]) -> str:
    """Dump raw session records with their keys sorted."""
    records = list(records)
    lines = ["=== Raw iSCSI Session Data ===", "", f"Found {len(records)} sessions:", ""]

    for i, record in enumerate(records):
        if not isinstance(record, Mapping):
            lines.append(f"Session {i}: unexpected type {type(record).__name__}")
            continue
        lines.append(f"Session {i}:")
        lines.extend(f"  {key}: {record[key]}" for key in sorted(record))
        lines.append("")

    return "\n".join(lines)
