"""Pytest configuration for adjusting import paths and shared fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_configure() -> None:
    """Ensure the src/ directory is importable without installing the package."""
    root = Path(__file__).resolve().parents[1]
    src_dir = root / "src"
    src_path = str(src_dir)
    if src_path not in sys.path:
        sys.path.insert(0, src_path)


@pytest.fixture
def credentials():
    from auth_flow.credentials import ClientCredentials

    return ClientCredentials(
        client_id="client",
        client_secret="secret",
        authorization_endpoint="https://accounts.example.com/o/oauth2/auth",
        token_endpoint="https://oauth2.example.com/token",
    )
