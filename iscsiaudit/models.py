#!/usr/bin/env python3
"""
Typed records for the iSCSI audit.

Resource records are produced by the decode step at the fetcher boundary.
Result records are produced by the classifier and the cleanup executor and
are never mutated afterwards.
"""

import dataclasses
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union


EXTENT_TYPE_DISK = "DISK"
EXTENT_TYPE_FILE = "FILE"
ZVOL_PREFIX = "zvol/"


@dataclass(frozen=True)
class Target:
    """An iSCSI target as exposed by the storage appliance."""
    id: int
    name: str


@dataclass(frozen=True)
class Extent:
    """A backing storage unit that can be attached to a target."""
    id: int
    name: str
    disk: str = ""
    type: str = EXTENT_TYPE_DISK

    @property
    def zvol_path(self) -> Optional[str]:
        """Dataset path of the backing zvol, or None for non-zvol extents."""
        if self.type == EXTENT_TYPE_DISK and self.disk.startswith(ZVOL_PREFIX):
            return self.disk[len(ZVOL_PREFIX):]
        return None


@dataclass(frozen=True)
class Association:
    """Link between a target and an extent."""
    id: int
    target: int
    extent: int


@dataclass(frozen=True)
class SessionRecord:
    """
    An active iSCSI session.

    Only the fields that can identify the target are kept. ``target`` holds
    either the numeric target id or the qualified target name (IQN).
    """
    target: Union[int, str, None] = None
    target_alias: Optional[str] = None
    target_name: Optional[str] = None
    initiator: Optional[str] = None


@dataclass(frozen=True)
class TargetInfo:
    """Target as reported by the classifier."""
    id: int
    name: str
    # None when the dataset was not (or could not be) checked
    has_dataset: Optional[bool] = None
    dataset_path: str = ""


@dataclass(frozen=True)
class ExtentInfo:
    """Extent as reported by the classifier."""
    id: int
    name: str
    disk: str

    @classmethod
    def from_extent(cls, extent: Extent) -> "ExtentInfo":
        return cls(id=extent.id, name=extent.name, disk=extent.disk)


@dataclass(frozen=True)
class TargetConnectionInfo:
    """Target without active sessions, annotated with its extent if any."""
    target: TargetInfo
    has_extent: bool
    extent: Optional[ExtentInfo] = None
    active_sessions: int = 0
    possible_orphaned: bool = True


@dataclass(frozen=True)
class ProbeFailure:
    """A resource whose existence check could not be answered."""
    kind: str
    resource_id: int
    path: str
    error: str


@dataclass(frozen=True)
class AuditResult:
    """Outcome of one audit run."""
    targets_without_extents: Tuple[TargetInfo, ...] = ()
    orphaned_targets_with_dataset: Tuple[TargetInfo, ...] = ()
    orphaned_targets_without_dataset: Tuple[TargetInfo, ...] = ()
    extents_without_targets: Tuple[ExtentInfo, ...] = ()
    orphaned_extents: Tuple[ExtentInfo, ...] = ()
    targets_without_connection: Tuple[TargetConnectionInfo, ...] = ()
    probe_failures: Tuple[ProbeFailure, ...] = ()
    session_counts: Mapping[int, int] = field(default_factory=dict)
    warnings: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Read-only view over a private copy
        object.__setattr__(self, 'session_counts', MappingProxyType(dict(self.session_counts)))

    @property
    def total_issues(self) -> int:
        return (len(self.targets_without_extents)
                + len(self.extents_without_targets)
                + len(self.orphaned_extents))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to plain JSON-serialisable data."""
        data: Dict[str, Any] = {}
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if f.name == 'session_counts':
                # JSON object keys must be strings
                data[f.name] = {str(k): v for k, v in value.items()}
            elif f.name == 'warnings':
                data[f.name] = list(value)
            else:
                data[f.name] = [dataclasses.asdict(item) for item in value]
        data['total_issues'] = self.total_issues
        return data


@dataclass(frozen=True)
class CleanupFailure:
    """A target whose deletion failed."""
    target_id: int
    target_name: str
    error: str


@dataclass(frozen=True)
class CleanupSummary:
    """Outcome of one cleanup pass."""
    attempted: int
    succeeded: int
    dry_run: bool
    deleted_ids: Tuple[int, ...] = ()
    failures: Tuple[CleanupFailure, ...] = ()

    @property
    def failed(self) -> int:
        return len(self.failures)

    def to_dict(self) -> Dict[str, Any]:
        data = dataclasses.asdict(self)
        data['failed'] = self.failed
        return data
