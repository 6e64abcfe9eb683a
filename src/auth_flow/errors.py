"""Exception hierarchy for the authorization-code flow."""

from __future__ import annotations

from typing import Any, Dict, Optional


class OAuthFlowError(Exception):
    """Base exception for every failure in the OAuth helper."""


class ConfigurationError(OAuthFlowError):
    """Client credentials or provider endpoints are missing or invalid."""


class AuthorizationDeniedError(OAuthFlowError):
    """The provider redirected back with an error or without a code."""


class TokenExchangeError(OAuthFlowError):
    """The token endpoint call failed or returned an incomplete payload."""

    def __init__(self, message: str, payload: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.payload = payload


class NoValidTokenError(OAuthFlowError):
    """No complete token pair is available in memory or on disk."""


class TokenStoreError(OAuthFlowError):
    """The token file could not be read or written."""


class UpstreamCallError(OAuthFlowError):
    """The protected resource call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
