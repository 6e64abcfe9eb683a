"""Unit tests for client credential loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from auth_flow.credentials import ClientCredentials, load_client_credentials
from auth_flow.errors import ConfigurationError

WEB_SECRETS = {
    "web": {
        "client_id": "abc.apps.googleusercontent.com",
        "project_id": "demo",
        "auth_uri": "https://accounts.google.com/o/oauth2/auth",
        "token_uri": "https://oauth2.googleapis.com/token",
        "client_secret": "s3cret",
        "redirect_uris": ["http://127.0.0.1:3030/auth-code-redirect"],
    }
}


def write_json(path: Path, payload: object) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_loads_web_client_secrets(tmp_path: Path) -> None:
    path = write_json(tmp_path / "cred.json", WEB_SECRETS)

    credentials = load_client_credentials(path)

    assert credentials == ClientCredentials(
        client_id="abc.apps.googleusercontent.com",
        client_secret="s3cret",
        authorization_endpoint="https://accounts.google.com/o/oauth2/auth",
        token_endpoint="https://oauth2.googleapis.com/token",
    )


def test_loads_installed_client_secrets(tmp_path: Path) -> None:
    path = write_json(tmp_path / "cred.json", {"installed": WEB_SECRETS["web"]})

    assert load_client_credentials(path).client_secret == "s3cret"


def test_missing_file_is_configuration_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        load_client_credentials(tmp_path / "absent.json")


def test_invalid_json_is_configuration_error(tmp_path: Path) -> None:
    path = tmp_path / "cred.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_client_credentials(path)


@pytest.mark.parametrize("field", ["client_id", "client_secret", "auth_uri", "token_uri"])
def test_each_field_is_required(tmp_path: Path, field: str) -> None:
    section = dict(WEB_SECRETS["web"])
    del section[field]
    path = write_json(tmp_path / "cred.json", {"web": section})

    with pytest.raises(ConfigurationError, match=field):
        load_client_credentials(path)


def test_non_utf8_file_is_configuration_error(tmp_path: Path) -> None:
    path = tmp_path / "cred.json"
    path.write_bytes(b"\xff\xfe{}")

    with pytest.raises(ConfigurationError, match="UTF-8"):
        load_client_credentials(path)
