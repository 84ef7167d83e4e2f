#!/usr/bin/env python3
"""
Resource fetcher.

Issues the four list queries strictly in sequence and decodes each response.
Targets, extents and associations are required; the session list is not.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple, TypeVar

from .client import StorageControlAPI
from .decoding import decode_association, decode_extent, decode_list, decode_session, decode_target
from .errors import FetchError
from .models import Association, Extent, SessionRecord, Target


T = TypeVar('T')


@dataclass(frozen=True)
class FetchedResources:
    """Decoded resource lists of one audit run."""
    targets: Tuple[Target, ...]
    extents: Tuple[Extent, ...]
    associations: Tuple[Association, ...]
    sessions: Tuple[SessionRecord, ...]
    # Set when the session list could not be fetched
    session_error: Optional[str] = None


class ResourceFetcher:
    """Fetches and decodes targets, extents, associations and sessions."""

    def __init__(self, api: StorageControlAPI, logger: Optional[logging.Logger] = None) -> None:
        self.api = api
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    def _fetch(self, resource: str, call: Callable[[], Any], decoder: Callable[[Any], T],
               skip_invalid: bool = False) -> List[T]:
        self.logger.info(f"Fetching {resource}...")
        try:
            records = decode_list(resource, call(), decoder, skip_invalid=skip_invalid)
        except Exception as e:
            self.logger.error(f"Failed to get {resource}: {e}")
            raise FetchError(resource, e) from e
        self.logger.info(f"  Found {len(records)} {resource}")
        return records

    def fetch_targets(self) -> List[Target]:
        return self._fetch("iSCSI targets", self.api.list_targets, decode_target)

    def fetch_extents(self) -> List[Extent]:
        return self._fetch("iSCSI extents", self.api.list_extents, decode_extent)

    def fetch_associations(self) -> List[Association]:
        return self._fetch("target-extent associations", self.api.list_associations, decode_association)

    def fetch_sessions(self) -> List[SessionRecord]:
        # A malformed session record is dropped, not the whole list
        return self._fetch("active iSCSI sessions", self.api.list_sessions, decode_session, skip_invalid=True)

    def fetch_all(self) -> FetchedResources:
        """
        Fetch every resource list.

        Returns:
            FetchedResources with all decoded records

        Raises:
            FetchError: If targets, extents or associations cannot be fetched
        """
        targets = self.fetch_targets()
        extents = self.fetch_extents()
        associations = self.fetch_associations()

        session_error = None
        try:
            sessions = self.fetch_sessions()
        except FetchError as e:
            self.logger.warning(f"Failed to get sessions, continuing without session data: {e.cause}")
            sessions = []
            session_error = str(e.cause)

        return FetchedResources(
            targets=tuple(targets),
            extents=tuple(extents),
            associations=tuple(associations),
            sessions=tuple(sessions),
            session_error=session_error,
        )
