"""FastAPI application exposing the authorization-code endpoints."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, RedirectResponse, Response

from api_client.resource_client import ResourceClient
from auth_flow.controller import AuthFlowController
from auth_flow.errors import (
    AuthorizationDeniedError,
    ConfigurationError,
    NoValidTokenError,
    OAuthFlowError,
    TokenExchangeError,
    TokenStoreError,
    UpstreamCallError,
)

logger = logging.getLogger(__name__)

AUTHORIZE_ME = "authorize-me"
AUTH_CODE_REDIRECT = "auth-code-redirect"
LANDING_PATH = "/anywhere"

# Status returned when the callback cannot be completed.
CALLBACK_ERROR_STATUS = {
    AuthorizationDeniedError: 403,
    ConfigurationError: 500,
    TokenExchangeError: 502,
    TokenStoreError: 500,
}


def create_app(
    controller: AuthFlowController,
    resource_client: ResourceClient,
    *,
    landing_path: str = LANDING_PATH,
) -> FastAPI:
    """Build the app around an explicitly owned controller and resource client."""
    app = FastAPI(title="OAuth Code Helper", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.controller = controller
    app.state.resource_client = resource_client
    app.state.landing_path = landing_path

    app.add_exception_handler(Exception, _handle_uncaught)

    # Handlers are sync so Starlette runs them in its thread pool while
    # requests blocks on provider I/O.
    @app.get("/{path:path}")
    def dispatch(path: str, request: Request) -> Response:
        logger.info("Endpoint hit: %r", path)
        if path == AUTHORIZE_ME:
            return _handle_authorize_me(request)
        if path == AUTH_CODE_REDIRECT:
            return _handle_auth_code_redirect(request)
        return _handle_unhandled_route(request)

    return app


def _redirect(location: str) -> RedirectResponse:
    return RedirectResponse(location, status_code=301)


def _redirect_to_authorize_me() -> RedirectResponse:
    return _redirect(f"/{AUTHORIZE_ME}")


def _handle_authorize_me(request: Request) -> Response:
    controller: AuthFlowController = request.app.state.controller
    try:
        url = controller.start_authorization()
    except ConfigurationError:
        logger.exception("Cannot build the authorization URL")
        return PlainTextResponse("OAuth client is misconfigured.", status_code=500)
    return _redirect(url)


def _handle_auth_code_redirect(request: Request) -> Response:
    controller: AuthFlowController = request.app.state.controller
    query = {key: value for key, value in request.query_params.items() if key in ("code", "error")}
    try:
        controller.handle_callback(query)
    except OAuthFlowError as exc:
        status = CALLBACK_ERROR_STATUS.get(type(exc), 500)
        logger.warning("Authorization callback failed: %s", exc)
        return PlainTextResponse(str(exc), status_code=status)
    return _redirect(request.app.state.landing_path)


def _handle_unhandled_route(request: Request) -> Response:
    controller: AuthFlowController = request.app.state.controller
    resource_client: ResourceClient = request.app.state.resource_client
    try:
        tokens = controller.ensure_authenticated()
    except NoValidTokenError as exc:
        logger.info("Error while reading and loading tokens: %s", exc)
        return _redirect_to_authorize_me()

    try:
        upstream = resource_client.fetch(tokens.access_token)
    except UpstreamCallError as exc:
        logger.warning("Protected resource call failed: %s", exc)
        controller.invalidate()
        return _redirect_to_authorize_me()

    logger.info("Protected resource response: %s", upstream.text)
    return Response(
        content=upstream.content,
        status_code=200,
        media_type=upstream.headers.get("Content-Type", "application/json"),
    )


async def _handle_uncaught(request: Request, exc: Exception) -> Response:
    logger.error("Unhandled error for %s", request.url.path, exc_info=exc)
    return PlainTextResponse("Internal server error.", status_code=500)
