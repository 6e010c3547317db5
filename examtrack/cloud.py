"""Cloud backup client for examtrack.

Pushes the export document to a backend and pulls it back. A pull never
writes state directly: the pulled document goes through the importer like
any other file, so dedup and staging apply.

Credentials are loaded with priority:
1. ``EXAMTRACK_BACKEND_URL`` / ``EXAMTRACK_AUTH_TOKEN``
2. ``<home>/credentials.json``
"""

import json
import logging
import os
from typing import Any, Dict, Optional

import httpx

from examtrack.types import CloudSyncError
from examtrack.utils import get_examtrack_home
from examtrack.validation import validate_backend_url

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


def load_cloud_credentials() -> Optional[Dict[str, str]]:
    """Return ``{"backend_url", "auth_token"}`` or None if not configured."""
    backend_url = os.environ.get("EXAMTRACK_BACKEND_URL")
    auth_token = os.environ.get("EXAMTRACK_AUTH_TOKEN")

    if not backend_url or not auth_token:
        credentials_path = get_examtrack_home() / "credentials.json"
        if credentials_path.exists():
            try:
                creds = json.loads(credentials_path.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, OSError) as e:
                logger.debug("Failed to load credentials file: %s", e)
                creds = {}
            if isinstance(creds, dict):
                backend_url = backend_url or creds.get("backend_url")
                auth_token = auth_token or creds.get("auth_token") or creds.get("token")

    if backend_url:
        backend_url = validate_backend_url(backend_url)
    if not backend_url or not auth_token:
        return None
    return {"backend_url": backend_url.rstrip("/"), "auth_token": auth_token}


class CloudClient:
    """HTTP client for the cloud backup API.

    Args:
        backend_url: Base URL of the backend
        auth_token: Bearer token
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests use ``httpx.MockTransport``)
    """

    def __init__(
        self,
        backend_url: str,
        auth_token: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        validated = validate_backend_url(backend_url)
        if not validated:
            raise CloudSyncError(f"Refusing unsafe backend URL: {backend_url}")
        self.backend_url = validated.rstrip("/")
        self._client = httpx.Client(
            base_url=self.backend_url,
            headers={
                "Authorization": f"Bearer {auth_token}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_environment(cls, **kwargs) -> Optional["CloudClient"]:
        creds = load_cloud_credentials()
        if creds is None:
            return None
        return cls(creds["backend_url"], creds["auth_token"], **kwargs)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "CloudClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise CloudSyncError(f"Connection failed: {e}") from e
        if response.status_code >= 400:
            raise CloudSyncError(
                f"Backend returned status {response.status_code}",
                status_code=response.status_code,
            )
        return response

    def health_check(self) -> Dict[str, Any]:
        """Return ``{"healthy": bool, "error"?: str}``. Never raises."""
        try:
            self._request("GET", "/health")
        except CloudSyncError as e:
            logger.debug("Cloud health check failed: %s", e)
            return {"healthy": False, "error": str(e)}
        return {"healthy": True}

    def push(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """Upload an export document. Returns the backend's JSON reply."""
        response = self._request(
            "POST",
            "/sync/push",
            content=json.dumps(document, ensure_ascii=False).encode("utf-8"),
        )
        try:
            return response.json()
        except ValueError:
            return {}

    def pull(self) -> str:
        """Download the stored export document as raw JSON text."""
        return self._request("GET", "/sync/pull").text
