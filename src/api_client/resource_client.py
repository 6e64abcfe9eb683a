"""Client for the protected resource called with the current access token."""

from __future__ import annotations

import logging
import os
from typing import Dict, Optional

import requests

from auth_flow.errors import UpstreamCallError

logger = logging.getLogger(__name__)

DEFAULT_RESOURCE_URL = "https://www.googleapis.com/drive/v2/files"
REQUEST_TIMEOUT = 15


class ResourceClient:
    """Issue authenticated requests against the downstream API."""

    def __init__(
        self,
        resource_url: str = DEFAULT_RESOURCE_URL,
        session: Optional[requests.Session] = None,
        *,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self.resource_url = resource_url
        self.session = session or requests.Session()
        self.timeout = timeout

    @classmethod
    def from_env(cls, session: Optional[requests.Session] = None) -> "ResourceClient":
        """Instantiate a client using the OAUTH_RESOURCE_URL environment variable."""
        return cls(
            resource_url=os.environ.get("OAUTH_RESOURCE_URL", DEFAULT_RESOURCE_URL),
            session=session,
        )

    def fetch(self, access_token: str) -> requests.Response:
        """GET the protected resource.

        Any failure is reported the same way; callers cannot tell an expired
        token from other upstream errors.

        Raises:
            UpstreamCallError: On transport failure or a non-success status.
        """
        try:
            response = self.session.get(
                self.resource_url,
                headers=self._auth_headers(access_token),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise UpstreamCallError(f"Request to {self.resource_url} failed: {exc}") from exc

        if not response.ok:
            raise UpstreamCallError(
                f"Error in the response from {self.resource_url}: HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _auth_headers(access_token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {access_token}"}
