"""
➡️ But : Une taxonomie d'erreurs explicite, propagée jusqu'à la frontière HTTP.

Chaque erreur est une HTTPException (les services peuvent la lever directement,
comme avant) avec un `code` stable. Le handler les rend toutes sous la forme :

    {"error": "<message>", "code": "<code>"}

🔹 Avantages :

L'appelant distingue un échec Cloudinary d'un échec base de données.

Un seul format d'erreur pour le client.
"""

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class GalleryError(HTTPException):
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "server_error"
    default_detail: str = "Internal server error"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(status_code=self.http_status, detail=detail or self.default_detail)


class Unauthorized(GalleryError):
    http_status = status.HTTP_401_UNAUTHORIZED
    code = "unauthorized"
    default_detail = "Unauthorized"


class BadRequest(GalleryError):
    http_status = status.HTTP_400_BAD_REQUEST
    code = "bad_request"
    default_detail = "Bad request"


class DuplicateAsset(GalleryError):
    http_status = status.HTTP_409_CONFLICT
    code = "duplicate_asset"
    default_detail = "A record already exists for this asset"


class PayloadTooLarge(GalleryError):
    http_status = 413  # Content Too Large
    code = "payload_too_large"
    default_detail = "File too large"


class ConfigurationError(GalleryError):
    code = "configuration_error"
    default_detail = "Media service credentials not configured"


class PersistenceFailure(GalleryError):
    code = "persistence_failure"
    default_detail = "Database operation failed"


class UpstreamFailure(GalleryError):
    http_status = status.HTTP_502_BAD_GATEWAY
    code = "upstream_failure"
    default_detail = "Media service request failed"


def error_body(message: str, code: str) -> dict:
    return {"error": message, "code": code}


# -----------------------------
# Handlers
# -----------------------------
async def _gallery_error_handler(request: Request, exc: GalleryError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.detail, exc.code))


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # HTTPException « brute » (404 de routing, 405...) : même format
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail), "http_error"),
        headers=getattr(exc, "headers", None),
    )


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"{where}: {first.get('msg', 'invalid')}" if where else first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=BadRequest.http_status,
        content=error_body(message, BadRequest.code),
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error_body("Internal server error", "server_error"))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GalleryError, _gallery_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
