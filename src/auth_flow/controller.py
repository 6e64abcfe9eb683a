"""Authorization-code flow controller with in-process token ownership."""

from __future__ import annotations

import enum
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlencode

import requests

from .credentials import ClientCredentials, load_client_credentials
from .errors import (
    AuthorizationDeniedError,
    ConfigurationError,
    NoValidTokenError,
    TokenExchangeError,
    TokenStoreError,
)
from .token_store import TokenPair, TokenStore

logger = logging.getLogger(__name__)

AUTH_SCOPE = "https://www.googleapis.com/auth/drive"
DEFAULT_REDIRECT_URI = "http://127.0.0.1:3030/auth-code-redirect"
DEFAULT_CREDENTIALS_PATH = Path("cred.json")
DEFAULT_TOKEN_STORE_PATH = Path("tokens.json")
REQUEST_TIMEOUT = 15


class FlowState(str, enum.Enum):
    """Where the controller is in the authorization-code flow."""

    NO_TOKEN = "no_token"
    AWAITING_CODE = "awaiting_code"
    EXCHANGING = "exchanging"
    AUTHENTICATED = "authenticated"


class AuthFlowController:
    """Drive the OAuth2 authorization-code flow for a single local user.

    The controller owns the current TokenPair. Every read or mutation of it
    goes through ``self._lock`` so request handlers running on different
    threads see a consistent pair.
    """

    def __init__(
        self,
        credentials: ClientCredentials,
        token_store: TokenStore,
        session: Optional[requests.Session] = None,
        *,
        redirect_uri: str = DEFAULT_REDIRECT_URI,
        scope: str = AUTH_SCOPE,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self.credentials = credentials
        self.token_store = token_store
        self.session = session or requests.Session()
        self.redirect_uri = redirect_uri
        self.scope = scope
        self.timeout = timeout
        self._lock = threading.Lock()
        self._tokens: Optional[TokenPair] = None
        self._state = FlowState.NO_TOKEN

    @classmethod
    def from_env(
        cls,
        credentials_path: Optional[Path] = None,
        token_store_path: Optional[Path] = None,
        *,
        session: Optional[requests.Session] = None,
    ) -> "AuthFlowController":
        """Instantiate a controller using environment variables.

        Raises:
            ConfigurationError: If the credentials file cannot be loaded.
        """
        credentials_file = credentials_path or Path(
            os.environ.get("OAUTH_CREDENTIALS_FILE", str(DEFAULT_CREDENTIALS_PATH))
        )
        store_file = token_store_path or Path(
            os.environ.get("OAUTH_TOKEN_FILE", str(DEFAULT_TOKEN_STORE_PATH))
        )
        credentials = load_client_credentials(credentials_file)
        return cls(
            credentials=credentials,
            token_store=TokenStore(store_file),
            session=session,
            redirect_uri=os.environ.get("OAUTH_REDIRECT_URI", DEFAULT_REDIRECT_URI),
            scope=os.environ.get("OAUTH_SCOPE", AUTH_SCOPE),
        )

    @property
    def state(self) -> FlowState:
        return self._state

    # ------------------------------------------------------------------
    # Authorization request
    # ------------------------------------------------------------------

    def build_authorization_url(self) -> str:
        """Return the provider URL the browser should be sent to for consent."""
        endpoint = self.credentials.authorization_endpoint
        client_id = self.credentials.client_id
        if not endpoint:
            raise ConfigurationError("Authorization endpoint is not configured.")
        if not client_id:
            raise ConfigurationError("Client id is not configured.")

        params = {
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": self.scope,
            "access_type": "offline",
            "client_id": client_id,
        }
        separator = "&" if "?" in endpoint else "?"
        return f"{endpoint}{separator}{urlencode(params)}"

    def start_authorization(self) -> str:
        """Build the authorization URL and record that a code is expected."""
        url = self.build_authorization_url()
        with self._lock:
            if self._state is not FlowState.AUTHENTICATED:
                self._state = FlowState.AWAITING_CODE
        return url

    # ------------------------------------------------------------------
    # Code exchange
    # ------------------------------------------------------------------

    def handle_callback(self, query: Mapping[str, str]) -> TokenPair:
        """Consume the provider redirect and exchange its code for tokens."""
        error = query.get("error")
        code = query.get("code")
        if error is not None:
            raise AuthorizationDeniedError(f"Provider returned an error: {error}")
        if not code:
            raise AuthorizationDeniedError("Authentication code not found.")
        return self.exchange_code(code)

    def exchange_code(self, code: str) -> TokenPair:
        """Exchange an authorization code for tokens and make them current."""
        token_endpoint = self.credentials.token_endpoint
        if not token_endpoint:
            raise ConfigurationError("Valid token endpoint not found.")

        with self._lock:
            previous_state = self._state
            self._state = FlowState.EXCHANGING
        try:
            payload = self._request_tokens(token_endpoint, code)
            try:
                tokens = TokenPair.from_dict(payload)
            except ValueError as exc:
                raise TokenExchangeError(
                    f"Could not get access token: {exc}", payload=payload
                ) from exc
            self._commit(tokens)
        except Exception:
            with self._lock:
                if self._state is FlowState.EXCHANGING:
                    self._state = self._settled_state(previous_state)
            raise

        logger.info("OAuth tokens obtained from %s", token_endpoint)
        return tokens

    def _request_tokens(self, token_endpoint: str, code: str) -> Dict[str, Any]:
        try:
            response = self.session.post(
                token_endpoint,
                data={
                    "client_id": self.credentials.client_id,
                    "client_secret": self.credentials.client_secret,
                    "code": code,
                    "grant_type": "authorization_code",
                    "redirect_uri": self.redirect_uri,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise TokenExchangeError(f"Token endpoint request failed: {exc}") from exc

        # The body decides success; a non-2xx status alone is only reported.
        if response.status_code >= 400:
            logger.warning("Token endpoint answered with HTTP %s", response.status_code)
        try:
            payload = response.json()
        except ValueError as exc:
            raise TokenExchangeError("Token endpoint did not return JSON") from exc
        if not isinstance(payload, dict):
            raise TokenExchangeError("Token endpoint returned an unexpected payload")
        return payload

    def _commit(self, tokens: TokenPair) -> None:
        with self._lock:
            self.token_store.save(tokens)
            self._tokens = tokens
            self._state = FlowState.AUTHENTICATED

    def _settled_state(self, previous: FlowState) -> FlowState:
        if self._tokens is not None:
            return FlowState.AUTHENTICATED
        if previous is FlowState.AWAITING_CODE:
            return previous
        return FlowState.NO_TOKEN

    # ------------------------------------------------------------------
    # Token reuse
    # ------------------------------------------------------------------

    def ensure_authenticated(self) -> TokenPair:
        """Return the current pair, reloading it from disk when memory is empty."""
        with self._lock:
            if self._tokens is not None:
                return self._tokens
            try:
                tokens = self.token_store.load()
            except TokenStoreError as exc:
                raise NoValidTokenError(str(exc)) from exc
            if tokens is None:
                raise NoValidTokenError("No stored tokens found.")
            self._tokens = tokens
            self._state = FlowState.AUTHENTICATED
            logger.debug("Loaded stored tokens from %s", self.token_store.path)
            return tokens

    def invalidate(self) -> None:
        """Forget the in-memory pair; the token file is left in place."""
        with self._lock:
            self._tokens = None
            self._state = FlowState.NO_TOKEN
        logger.info("Discarded in-memory OAuth tokens")
