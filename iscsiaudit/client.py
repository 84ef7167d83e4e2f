#!/usr/bin/env python3
"""
Storage control API client.

StorageControlAPI is the capability the audit depends on: four list queries,
an exact-path existence query and a forced target delete. TrueNASClient
implements it against the TrueNAS SCALE REST API (v2.0).
"""

import logging
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable
from urllib.parse import urljoin

import requests
import urllib3

from .errors import APIError


# Resource classes accepted by query_exists_by_path
RESOURCE_DATASET = "dataset"
RESOURCE_VOLUME = "volume"

RESOURCE_ENDPOINTS: Dict[str, str] = {
    RESOURCE_DATASET: "pool/dataset",
    RESOURCE_VOLUME: "pool/dataset",
}


@runtime_checkable
class StorageControlAPI(Protocol):
    """Operations the audit needs from the storage appliance."""

    def list_targets(self) -> List[Any]: ...

    def list_extents(self) -> List[Any]: ...

    def list_associations(self) -> List[Any]: ...

    def list_sessions(self) -> List[Any]: ...

    def query_exists_by_path(self, resource_class: str, exact_path: str) -> bool: ...

    def delete_target(self, target_id: int, force: bool = True) -> None: ...


class TrueNASClient:
    """Client for the TrueNAS SCALE REST API"""

    def __init__(self, host: str, api_key: str, port: Optional[int] = None,
                 use_https: bool = True, ssl_verify: bool = False, timeout: float = 60.0,
                 logger: Optional[logging.Logger] = None) -> None:
        """
        Initialize the client.

        Args:
            host: TrueNAS hostname or IP (may include ``:port``)
            api_key: TrueNAS API key
            port: Optional port, overrides one embedded in host
            use_https: Use HTTPS instead of HTTP
            ssl_verify: Verify the server certificate
            timeout: Timeout in seconds applied to every request
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger(self.__class__.__name__)

        if not api_key:
            raise ValueError("TrueNAS API key is required")

        # Handle host:port
        if ":" in host and not port:
            host, port_str = host.rsplit(":", 1)
            try:
                port = int(port_str)
            except ValueError:
                raise ValueError(f"Invalid port in host: {port_str}") from None

        protocol = "https" if use_https else "http"
        if port:
            self.base_url = f"{protocol}://{host}:{port}/api/v2.0/"
        else:
            self.base_url = f"{protocol}://{host}/api/v2.0/"

        self.timeout = timeout

        self.session = requests.Session()
        self.session.verify = ssl_verify

        # Disable SSL warnings for self-signed certs
        if not ssl_verify:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        self.session.headers.update({
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json"
        })

        self.logger.debug(f"API session set up for {self.base_url}")

    def _request(self, method: str, endpoint: str, params: Optional[Dict[str, Any]] = None,
                 payload: Any = None) -> Any:
        """Make a request to the TrueNAS API and return the decoded JSON body"""
        url = urljoin(self.base_url, endpoint)
        try:
            response = self.session.request(method, url, params=params, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status == 401:
                raise APIError("Authentication Error: Invalid API key", status) from e
            raise APIError(f"HTTP Error on {method} {endpoint}: {e}", status) from e
        except requests.exceptions.RequestException as e:
            raise APIError(f"Unable to reach TrueNAS API ({method} {endpoint}): {e}") from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise APIError(f"Invalid JSON from {method} {endpoint}: {e}", response.status_code) from e

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Make a GET request to the TrueNAS API"""
        return self._request("GET", endpoint, params=params)

    def delete(self, endpoint: str, payload: Any = None) -> Any:
        """Make a DELETE request to the TrueNAS API"""
        return self._request("DELETE", endpoint, payload=payload)

    def list_targets(self) -> List[Any]:
        return self.get("iscsi/target")

    def list_extents(self) -> List[Any]:
        return self.get("iscsi/extent")

    def list_associations(self) -> List[Any]:
        return self.get("iscsi/targetextent")

    def list_sessions(self) -> List[Any]:
        return self.get("iscsi/global/sessions")

    def query_exists_by_path(self, resource_class: str, exact_path: str) -> bool:
        """
        Check whether a resource with the exact id exists.

        Args:
            resource_class: One of RESOURCE_DATASET or RESOURCE_VOLUME
            exact_path: Full dataset path, e.g. ``tank/k8s/pvc-123``

        Returns:
            True if the query matched at least one resource
        """
        if not (endpoint := RESOURCE_ENDPOINTS.get(resource_class)):
            raise ValueError(f"Unknown resource class: {resource_class}")

        result = self.get(endpoint, params={"id": exact_path})
        if not isinstance(result, list):
            raise APIError(f"Unexpected response format from {endpoint}: {type(result).__name__}")
        return len(result) > 0

    def delete_target(self, target_id: int, force: bool = True) -> None:
        """Delete an iSCSI target; ``force`` removes it even with active sessions"""
        self.delete(f"iscsi/target/id/{target_id}", payload=force)
