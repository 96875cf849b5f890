"""
auth/dependencies.py -- FastAPI Depends() helpers for the access control gate.

Two stages, chained through FastAPI's dependency graph:
  1. get_current_claims() -- authentication. Reads the
     "Authorization: Bearer <token>" header and verifies the JWT. On success
     the Claims are attached to request.state.claims for downstream code.
  2. require_role(role) -- authorization. Depends on stage 1, then compares
     the token's role claim with the required role.

A failure in either stage raises before the route handler runs; api/main.py
turns the error into a 401 or 403 response.

Verification is stateless: the UserStore is never consulted, so the role in
the token is trusted until the token expires.

Layer rule: no imports from api/ or catalog/. This module may import from
fastapi because it is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import Depends, Request

from auth.models import Claims, Role
from auth.tokens import decode_access_token
from core.errors import UnauthenticatedError, UnauthorizedError

logger = logging.getLogger("catalogapi.auth.gate")

_BEARER_PREFIX = "bearer "


def extract_bearer_token(auth_header: str | None) -> str | None:
    """Return the token from an Authorization header value, or None.

    The scheme is matched case-insensitively. Anything other than
    "Bearer <token>" yields None.
    """
    if not auth_header or not auth_header.lower().startswith(_BEARER_PREFIX):
        return None
    token = auth_header[len(_BEARER_PREFIX) :].strip()
    return token or None


def get_current_claims(request: Request) -> Claims:
    """Require a valid bearer token. Raises an UnauthenticatedError subclass otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(claims: Claims = Depends(get_current_claims)): ...
    """
    token = extract_bearer_token(request.headers.get("Authorization"))
    try:
        claims = decode_access_token(token)
    except UnauthenticatedError as exc:
        logger.info("Rejected %s %s: token %s", request.method, request.url.path, exc.reason)
        raise
    request.state.claims = claims
    return claims


def require_role(role: Role) -> Callable[..., Claims]:
    """Build a dependency that admits only tokens whose role claim equals role."""

    def _check(request: Request, claims: Claims = Depends(get_current_claims)) -> Claims:
        if claims.role != role.value:
            logger.info(
                "Forbidden %s %s: user_id=%d role=%s",
                request.method,
                request.url.path,
                claims.subject_id,
                claims.role,
            )
            raise UnauthorizedError(role.value)
        return claims

    return _check


require_admin = require_role(Role.admin)
