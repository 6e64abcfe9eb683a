"""CLI utilities for the local OAuth authorization-code helper."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional

import requests
import uvicorn

from api_client.resource_client import ResourceClient
from auth_flow.controller import AuthFlowController
from auth_flow.errors import ConfigurationError, OAuthFlowError
from web_server.app import create_app

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3030


def build_parser() -> argparse.ArgumentParser:
    """Create command-line parser."""
    parser = argparse.ArgumentParser(
        description="Local OAuth2 authorization-code helper.",
    )
    parser.add_argument(
        "--credentials",
        type=Path,
        default=None,
        help="Path to the client secrets JSON file (default: cred.json).",
    )
    parser.add_argument(
        "--token-store",
        type=Path,
        default=None,
        help="Path to OAuth token file (default: tokens.json).",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging verbosity (default: INFO).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser(
        "serve", help="Run the local authorization server."
    )
    serve_parser.add_argument(
        "--host",
        default=os.environ.get("OAUTH_HOST", DEFAULT_HOST),
        help="Address to bind (default: 127.0.0.1).",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        default=os.environ.get("PORT", str(DEFAULT_PORT)),
        help="Port to bind (default: $PORT or 3030).",
    )

    subparsers.add_parser("auth-url", help="Print the provider authorization URL.")

    exchange_parser = subparsers.add_parser(
        "exchange-code", help="Exchange an authorization code for tokens."
    )
    exchange_parser.add_argument("--code", required=True, help="Authorization code.")

    fetch_parser = subparsers.add_parser(
        "fetch",
        help="Call the protected resource with the stored tokens.",
    )
    fetch_parser.add_argument(
        "--pretty",
        action="store_true",
        help="Pretty-print JSON response.",
    )

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Entrypoint for CLI execution."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Credentials are loaded before anything binds a port.
    try:
        controller = AuthFlowController.from_env(
            credentials_path=args.credentials,
            token_store_path=args.token_store,
        )
    except ConfigurationError as exc:
        parser.error(str(exc))

    try:
        if args.command == "serve":
            app = create_app(controller, ResourceClient.from_env())
            print(f"Starting server on http://{args.host}:{args.port}")
            uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())
            return 0

        if args.command == "auth-url":
            print(controller.build_authorization_url())
            return 0

        if args.command == "exchange-code":
            controller.exchange_code(args.code)
            print(f"Access token saved to {controller.token_store.path}.")
            return 0

        if args.command == "fetch":
            tokens = controller.ensure_authenticated()
            response = ResourceClient.from_env().fetch(tokens.access_token)
            _print_json(response.json(), pretty=args.pretty)
            return 0

        parser.error("Unknown command.")
    except OAuthFlowError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except requests.RequestException as exc:
        print(f"HTTP error: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"Error: response was not JSON ({exc})", file=sys.stderr)
        return 1


def _print_json(payload: Any, *, pretty: bool) -> None:
    if pretty:
        print(json.dumps(payload, indent=2))
    else:
        print(json.dumps(payload))


if __name__ == "__main__":
    raise SystemExit(main())
