#!/usr/bin/env python3
"""
Existence prober for backing datasets and zvols.
"""

import logging
from typing import Optional, Tuple

from .client import RESOURCE_DATASET, RESOURCE_VOLUME, StorageControlAPI
from .errors import ProbeError
from .models import Extent


class ExistenceProber:
    """
    Point queries against the storage control API.

    Every failure is raised as ProbeError so the caller can skip the
    resource instead of guessing whether it exists.
    """

    def __init__(self, api: StorageControlAPI, parent_dataset: str,
                 logger: Optional[logging.Logger] = None) -> None:
        self.api = api
        self.parent_dataset = parent_dataset.rstrip("/")
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    def dataset_path(self, target_name: str) -> str:
        return f"{self.parent_dataset}/{target_name}"

    def _exists(self, resource_class: str, path: str) -> bool:
        try:
            exists = self.api.query_exists_by_path(resource_class, path)
        except Exception as e:
            raise ProbeError(path, e) from e
        self.logger.debug(f"{resource_class} {path}: {'exists' if exists else 'missing'}")
        return bool(exists)

    def dataset_exists(self, target_name: str) -> Tuple[bool, str]:
        """
        Check whether the dataset backing a target exists.

        Args:
            target_name: Target name, the last component of the dataset path

        Returns:
            Tuple of (exists, probed dataset path)

        Raises:
            ProbeError: If the query fails
        """
        path = self.dataset_path(target_name)
        return self._exists(RESOURCE_DATASET, path), path

    def volume_exists(self, extent: Extent) -> bool:
        """
        Check whether the zvol behind a disk extent exists.

        Raises:
            ValueError: If the extent is not backed by a zvol
            ProbeError: If the query fails
        """
        if (path := extent.zvol_path) is None:
            raise ValueError(f"Extent {extent.id} is not backed by a zvol: {extent.disk!r}")
        return self._exists(RESOURCE_VOLUME, path)
