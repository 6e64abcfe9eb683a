"""Persistence helpers for OAuth tokens."""

from __future__ import annotations

import json
import logging
import os
import stat
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import TokenStoreError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenPair:
    """Access and refresh token issued together by a code exchange."""

    access_token: str
    refresh_token: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to serializable dict."""
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenPair":
        """Create a TokenPair, rejecting payloads that lack either token.

        Raises:
            ValueError: If either token is missing, empty, or not a string.
        """
        access_token = data.get("access_token")
        refresh_token = data.get("refresh_token")
        if not isinstance(access_token, str) or not access_token:
            raise ValueError("access_token is missing")
        if not isinstance(refresh_token, str) or not refresh_token:
            raise ValueError("refresh_token is missing")
        return cls(access_token=access_token, refresh_token=refresh_token)


class TokenStore:
    """File-based storage for the current token pair.

    The file is always replaced as a whole and kept owner-readable only.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> Optional[TokenPair]:
        """Return the stored pair, or None when nothing has been stored yet.

        Raises:
            TokenStoreError: If the file exists but is unreadable, not JSON,
                or holds a partial pair.
        """
        if not self.path.exists():
            return None
        try:
            contents = self.path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise TokenStoreError(f"Token file {self.path} is not valid UTF-8") from exc
        except OSError as exc:
            raise TokenStoreError(f"Cannot read token file {self.path}: {exc}") from exc
        if not contents.strip():
            return None

        try:
            data = json.loads(contents)
        except json.JSONDecodeError as exc:
            raise TokenStoreError(f"Token file {self.path} is not valid JSON") from exc
        if not isinstance(data, dict):
            raise TokenStoreError(f"Token file {self.path} does not hold an object")

        try:
            return TokenPair.from_dict(data)
        except ValueError as exc:
            raise TokenStoreError(f"Token file does not contain tokens: {exc}") from exc

    def save(self, tokens: TokenPair) -> None:
        """Persist tokens to disk, replacing any previous content atomically."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(tokens.to_dict(), handle, indent=2)
                    handle.flush()
                    os.fsync(handle.fileno())
                os.chmod(tmp_name, stat.S_IRUSR | stat.S_IWUSR)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise TokenStoreError(f"Cannot write token file {self.path}: {exc}") from exc
        logger.info("Saved OAuth tokens to %s", self.path)
