#!/usr/bin/env python3
"""
In-memory implementation of StorageControlAPI.

Deterministic double used by the tests and by dry runs against recorded
data. Resources are held as raw API dictionaries so the decode step is
exercised exactly as with the real client.
"""

from typing import Any, Dict, List, Optional, Set, Tuple

from .client import RESOURCE_DATASET, RESOURCE_VOLUME
from .errors import APIError


class InMemoryStorageAPI:
    """
    Storage control API backed by plain dictionaries.

    Errors can be injected per operation through ``inject_errors`` (operation
    name to exception) and per path through ``probe_errors`` / per target id
    through ``delete_errors``. Every call is appended to ``calls``.
    """

    def __init__(self,
                 targets: Optional[List[Dict[str, Any]]] = None,
                 extents: Optional[List[Dict[str, Any]]] = None,
                 associations: Optional[List[Dict[str, Any]]] = None,
                 sessions: Optional[List[Dict[str, Any]]] = None,
                 datasets: Optional[Set[str]] = None,
                 volumes: Optional[Set[str]] = None) -> None:
        self.targets: Dict[int, Dict[str, Any]] = {t['id']: dict(t) for t in targets or []}
        self.extents: List[Dict[str, Any]] = [dict(e) for e in extents or []]
        self.associations: List[Dict[str, Any]] = [dict(a) for a in associations or []]
        self.sessions: List[Dict[str, Any]] = [dict(s) for s in sessions or []]
        self.datasets: Set[str] = set(datasets or ())
        # zvols are datasets too; kept apart only so tests read clearly
        self.volumes: Set[str] = set(volumes or ())

        self.inject_errors: Dict[str, Exception] = {}
        self.probe_errors: Dict[str, Exception] = {}
        self.delete_errors: Dict[int, Exception] = {}
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []

    def _record(self, operation: str, *args: Any) -> None:
        self.calls.append((operation, args))
        if (error := self.inject_errors.get(operation)) is not None:
            raise error

    def calls_to(self, operation: str) -> List[Tuple[Any, ...]]:
        """Arguments of every recorded call to the given operation."""
        return [args for name, args in self.calls if name == operation]

    def list_targets(self) -> List[Any]:
        self._record('list_targets')
        return [dict(t) for t in sorted(self.targets.values(), key=lambda t: t['id'])]

    def list_extents(self) -> List[Any]:
        self._record('list_extents')
        return [dict(e) for e in self.extents]

    def list_associations(self) -> List[Any]:
        self._record('list_associations')
        return [dict(a) for a in self.associations]

    def list_sessions(self) -> List[Any]:
        self._record('list_sessions')
        return [dict(s) for s in self.sessions]

    def query_exists_by_path(self, resource_class: str, exact_path: str) -> bool:
        self._record('query_exists_by_path', resource_class, exact_path)
        if (error := self.probe_errors.get(exact_path)) is not None:
            raise error
        if resource_class not in (RESOURCE_DATASET, RESOURCE_VOLUME):
            raise ValueError(f"Unknown resource class: {resource_class}")
        return exact_path in self.datasets or exact_path in self.volumes

    def delete_target(self, target_id: int, force: bool = True) -> None:
        self._record('delete_target', target_id, force)
        if (error := self.delete_errors.get(target_id)) is not None:
            raise error
        if target_id not in self.targets:
            raise APIError(f"Target {target_id} does not exist", 404)
        del self.targets[target_id]
