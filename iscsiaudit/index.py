#!/usr/bin/env python3
"""
Lookup indices over the fetched resource lists.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Set

from .models import Association, Extent, Target


logger = logging.getLogger(__name__)


@dataclass
class AuditIndex:
    """Id- and name-keyed lookups shared by the session resolver and classifier."""
    target_by_id: Dict[int, Target] = field(default_factory=dict)
    target_id_by_name: Dict[str, int] = field(default_factory=dict)
    extent_by_id: Dict[int, Extent] = field(default_factory=dict)
    targets_with_extents: Set[int] = field(default_factory=set)
    extents_with_targets: Set[int] = field(default_factory=set)
    target_to_extent: Dict[int, Extent] = field(default_factory=dict)

    def has_extent(self, target_id: int) -> bool:
        return target_id in self.targets_with_extents

    def has_target(self, extent_id: int) -> bool:
        return extent_id in self.extents_with_targets


def build_index(targets: Iterable[Target], extents: Iterable[Extent],
                associations: Iterable[Association]) -> AuditIndex:
    """
    Build the lookup indices.

    A target with several associations keeps the extent of the last one seen.
    Associations pointing at unknown extents still mark both sides as linked
    but produce no target-to-extent entry.
    """
    index = AuditIndex()

    for target in targets:
        index.target_by_id[target.id] = target
        index.target_id_by_name[target.name] = target.id

    for extent in extents:
        index.extent_by_id[extent.id] = extent

    for assoc in associations:
        index.targets_with_extents.add(assoc.target)
        index.extents_with_targets.add(assoc.extent)
        if (extent := index.extent_by_id.get(assoc.extent)) is not None:
            if (previous := index.target_to_extent.get(assoc.target)) is not None and previous.id != extent.id:
                logger.debug(f"Target {assoc.target} has several extents; using {extent.id} over {previous.id}")
            index.target_to_extent[assoc.target] = extent

    return index
