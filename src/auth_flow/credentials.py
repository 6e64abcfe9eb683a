"""Client credentials loaded from a provider client-secrets file."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

# Google client-secret downloads nest the fields under one of these keys.
CLIENT_SECTIONS = ("web", "installed")


@dataclass(frozen=True)
class ClientCredentials:
    """Static client identity and provider endpoints."""

    client_id: str
    client_secret: str
    authorization_endpoint: str
    token_endpoint: str


def load_client_credentials(path: Path) -> ClientCredentials:
    """Read client credentials from a Google-style client secrets file.

    Args:
        path: JSON file with a top-level ``web`` (or ``installed``) object
            containing ``client_id``, ``client_secret``, ``auth_uri`` and
            ``token_uri``. A flat object with the same keys is accepted too.

    Returns:
        The parsed ClientCredentials.

    Raises:
        ConfigurationError: If the file is missing, is not JSON, or lacks a field.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Credentials file not found: {path}") from exc
    except UnicodeDecodeError as exc:
        raise ConfigurationError(f"Credentials file {path} is not valid UTF-8") from exc
    except OSError as exc:
        raise ConfigurationError(f"Cannot read credentials file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Credentials file {path} is not valid JSON") from exc

    section = _client_section(data)
    values = {}
    for key in ("client_id", "client_secret", "auth_uri", "token_uri"):
        value = section.get(key)
        if not isinstance(value, str) or not value:
            raise ConfigurationError(f"Credentials file {path} is missing {key!r}")
        values[key] = value

    logger.debug("Loaded client credentials from %s", path)
    return ClientCredentials(
        client_id=values["client_id"],
        client_secret=values["client_secret"],
        authorization_endpoint=values["auth_uri"],
        token_endpoint=values["token_uri"],
    )


def _client_section(data: Any) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ConfigurationError("Credentials file must contain a JSON object")
    for name in CLIENT_SECTIONS:
        section = data.get(name)
        if isinstance(section, dict):
            return section
    return data
