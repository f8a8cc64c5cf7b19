"""Bearer token resolution middleware for FastAPI."""

from __future__ import annotations

from typing import Awaitable, Callable

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from apps.helpdesk.core.config import get_settings
from apps.helpdesk.dependencies.auth import resolve_claim_from_token


class RBACMiddleware(BaseHTTPMiddleware):
    """Populate ``request.state.caller`` with the claim bound to the bearer token.

    Requests without a token pass through with ``caller`` set to ``None``;
    routes that need a caller reject them through their dependencies.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        authorization = request.headers.get("Authorization")
        token: str | None = None

        if authorization:
            scheme, _, credentials = authorization.partition(" ")
            if scheme.lower() != "bearer":
                return JSONResponse(
                    status_code=401, content={"detail": "Invalid authentication credentials"}
                )
            token = credentials.strip() or None

        try:
            request.state.caller = resolve_claim_from_token(token, get_settings().auth_tokens)
        except HTTPException as exc:
            return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

        return await call_next(request)
