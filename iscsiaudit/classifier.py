#!/usr/bin/env python3
"""
Classifier: sorts every target and extent into the audit categories.

Categories:
    1. targets without extents, split by whether the backing dataset exists
    2. extents without targets
    3. disk extents whose zvol is missing
    4. targets without active sessions

Categories 2-4 are independent of 1. A resource whose existence probe fails
is left out of the split it was probed for and listed in probe_failures; a
target without extents whose dataset check failed stays in category 1 with
has_dataset set to None.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from .errors import ProbeError
from .index import AuditIndex
from .models import (
    AuditResult,
    Extent,
    ExtentInfo,
    ProbeFailure,
    Target,
    TargetConnectionInfo,
    TargetInfo,
)
from .prober import ExistenceProber


logger = logging.getLogger(__name__)


def _classify_targets_without_extents(targets: Sequence[Target], index: AuditIndex, prober: ExistenceProber,
                                      failures: List[ProbeFailure]) -> Dict[str, List[TargetInfo]]:
    without_extents: List[TargetInfo] = []
    with_dataset: List[TargetInfo] = []
    without_dataset: List[TargetInfo] = []

    logger.info("Analyzing targets without extents...")
    for target in targets:
        if index.has_extent(target.id):
            continue

        try:
            has_dataset, dataset_path = prober.dataset_exists(target.name)
        except ProbeError as e:
            logger.warning(f"Could not check dataset for {target.name}: {e.cause}")
            failures.append(ProbeFailure('dataset', target.id, e.path, str(e.cause)))
            # Still listed, but in neither split
            without_extents.append(TargetInfo(id=target.id, name=target.name, dataset_path=e.path))
            continue

        info = TargetInfo(id=target.id, name=target.name, has_dataset=has_dataset, dataset_path=dataset_path)
        without_extents.append(info)
        if has_dataset:
            with_dataset.append(info)
        else:
            without_dataset.append(info)

    return {
        'without_extents': without_extents,
        'with_dataset': with_dataset,
        'without_dataset': without_dataset,
    }


def _classify_extents_without_targets(extents: Sequence[Extent], index: AuditIndex) -> List[ExtentInfo]:
    logger.info("Analyzing extents without targets...")
    return [ExtentInfo.from_extent(e) for e in extents if not index.has_target(e.id)]


def _classify_orphaned_extents(extents: Sequence[Extent], prober: ExistenceProber,
                               failures: List[ProbeFailure]) -> List[ExtentInfo]:
    logger.info("Checking for extents with missing zvols...")
    orphaned: List[ExtentInfo] = []

    for extent in extents:
        if extent.zvol_path is None:
            continue
        try:
            exists = prober.volume_exists(extent)
        except ProbeError as e:
            logger.warning(f"Could not check zvol {e.path}: {e.cause}")
            failures.append(ProbeFailure('zvol', extent.id, e.path, str(e.cause)))
            continue
        if not exists:
            orphaned.append(ExtentInfo.from_extent(extent))

    return orphaned


def _classify_targets_without_connection(targets: Sequence[Target], index: AuditIndex,
                                         session_counts: Mapping[int, int]) -> List[TargetConnectionInfo]:
    logger.info("Analyzing targets without active connections...")
    result: List[TargetConnectionInfo] = []

    for target in targets:
        if (count := session_counts.get(target.id, 0)) > 0:
            continue
        extent = index.target_to_extent.get(target.id)
        result.append(TargetConnectionInfo(
            target=TargetInfo(id=target.id, name=target.name),
            has_extent=index.has_extent(target.id),
            extent=ExtentInfo.from_extent(extent) if extent is not None else None,
            active_sessions=count,
        ))

    return result


def classify(index: AuditIndex, session_counts: Mapping[int, int], prober: ExistenceProber,
             warnings: Optional[Sequence[str]] = None) -> AuditResult:
    """
    Classify every target and extent in the index.

    Args:
        index: Lookup indices built from the fetched resources
        session_counts: Active session count per target id
        prober: Existence prober used for datasets and zvols
        warnings: Non-fatal warnings collected before classification

    Returns:
        AuditResult with every category ordered by resource id
    """
    targets = sorted(index.target_by_id.values(), key=lambda t: t.id)
    extents = sorted(index.extent_by_id.values(), key=lambda e: e.id)
    failures: List[ProbeFailure] = []

    split = _classify_targets_without_extents(targets, index, prober, failures)
    extents_without_targets = _classify_extents_without_targets(extents, index)
    orphaned_extents = _classify_orphaned_extents(extents, prober, failures)
    without_connection = _classify_targets_without_connection(targets, index, session_counts)

    all_warnings = list(warnings or ())
    all_warnings.extend(f"Could not check {f.kind} {f.path}: {f.error}" for f in failures)

    return AuditResult(
        targets_without_extents=tuple(split['without_extents']),
        orphaned_targets_with_dataset=tuple(split['with_dataset']),
        orphaned_targets_without_dataset=tuple(split['without_dataset']),
        extents_without_targets=tuple(extents_without_targets),
        orphaned_extents=tuple(orphaned_extents),
        targets_without_connection=tuple(without_connection),
        probe_failures=tuple(failures),
        session_counts=dict(sorted(session_counts.items())),
        warnings=tuple(all_warnings),
    )
