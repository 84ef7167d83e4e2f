#!/usr/bin/env python3
"""
Session resolver: maps active sessions to target ids.
"""

import logging
from typing import Dict, Iterable, Mapping, Optional

from .models import SessionRecord


logger = logging.getLogger(__name__)


def resolve_target_id(session: SessionRecord, target_id_by_name: Mapping[str, int]) -> Optional[int]:
    """
    Resolve the target a session belongs to.

    Tried in order, first hit wins: numeric target id, target alias, target
    name, then the last ``:`` segment of a qualified name
    (``iqn.2005-10.org.freenas.ctl:pvc-123`` -> ``pvc-123``).
    """
    if isinstance(session.target, int):
        return session.target

    if session.target_alias and (target_id := target_id_by_name.get(session.target_alias)) is not None:
        return target_id

    if session.target_name and (target_id := target_id_by_name.get(session.target_name)) is not None:
        return target_id

    if isinstance(session.target, str):
        parts = session.target.split(":")
        if len(parts) >= 2:
            return target_id_by_name.get(parts[-1])

    return None


def count_sessions(sessions: Iterable[SessionRecord], target_id_by_name: Mapping[str, int]) -> Dict[int, int]:
    """
    Count active sessions per target id.

    Each session adds at most one to a single target. Sessions that cannot
    be resolved are dropped. Targets without sessions are absent.
    """
    counts: Dict[int, int] = {}
    unresolved = 0

    for session in sessions:
        if (target_id := resolve_target_id(session, target_id_by_name)) is None:
            unresolved += 1
            continue
        counts[target_id] = counts.get(target_id, 0) + 1

    if unresolved:
        logger.debug(f"Dropped {unresolved} sessions that could not be matched to a target")

    return counts
