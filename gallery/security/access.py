"""
➡️ But : Contrôle d'accès aux routes, avant que la requête n'atteigne un endpoint.

- Pages publiques : /, /home, /sign-in, /sign-up (+ docs OpenAPI).
- API publique : GET /api/videos uniquement.
- Non connecté sur une API protégée -> 401 JSON.
- Non connecté sur une page protégée -> redirection vers SIGN_IN_URL.
- Connecté sur une page publique (hors HOME_URL) -> redirection vers HOME_URL.

La session résolue est posée sur request.state.session_user pour les dépendances.
"""

import logging
from typing import FrozenSet, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from gallery.core.errors import Unauthorized, error_body
from gallery.security.sessions import resolve_session

logger = logging.getLogger(__name__)

PUBLIC_PAGES: FrozenSet[str] = frozenset({"/", "/home", "/sign-in", "/sign-up"})
DOC_PATHS: FrozenSet[str] = frozenset({"/docs", "/docs/oauth2-redirect", "/redoc", "/openapi.json"})
PUBLIC_API: FrozenSet[Tuple[str, str]] = frozenset({("GET", "/api/videos"), ("HEAD", "/api/videos")})


def _normalize(path: str) -> str:
    return path.rstrip("/") or "/"


class AccessControlMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method == "OPTIONS":
            return await call_next(request)

        settings = request.app.state.settings
        path = _normalize(request.url.path)
        user = resolve_session(request, settings.jwt_settings, settings.AUTH_SESSION_COOKIE)
        request.state.session_user = user

        is_api = path == "/api" or path.startswith("/api/")
        is_public_page = path in PUBLIC_PAGES or path in DOC_PATHS
        is_public_api = (request.method, path) in PUBLIC_API

        if user is not None:
            if path in PUBLIC_PAGES and path != settings.HOME_URL:
                return RedirectResponse(settings.HOME_URL, status_code=307)
            return await call_next(request)

        if is_public_page or is_public_api:
            return await call_next(request)

        if is_api:
            logger.info("Rejected unauthenticated %s %s", request.method, path)
            return JSONResponse(status_code=401, content=error_body("Unauthorized user", Unauthorized.code))
        return RedirectResponse(settings.SIGN_IN_URL, status_code=307)
