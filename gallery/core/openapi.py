"""
➡️ But : Personnaliser la documentation Swagger/OpenAPI.

- description : conventions de l'API (camelCase, format d'erreur, pagination, auth),
- schéma de sécurité SessionBearer, appliqué aux seules opérations protégées
  (le listing GET /api/videos reste public).
"""

from fastapi.openapi.utils import get_openapi

from gallery.security.access import PUBLIC_API

DESCRIPTION = (
    "Galerie vidéo/image adossée à Cloudinary.\n\n"
    "### Conventions\n"
    "- Dates en UTC, clés JSON en camelCase (`publicId`, `originalSize`...).\n"
    "- Erreurs : `{\"error\": \"...\", \"code\": \"...\"}`.\n"
    "- Listing : `limit` + `cursor`, page suivante dans l'en-tête `X-Next-Cursor`.\n"
    "- Auth : token de session du fournisseur d'identité (Bearer ou cookie `__session`).\n"
)


def custom_openapi(app):
    if app.openapi_schema:
        return app.openapi_schema
    schema = get_openapi(title=app.title, version=app.version, description=DESCRIPTION, routes=app.routes)

    schema.setdefault("components", {}).setdefault("securitySchemes", {})["SessionBearer"] = {
        "type": "http",
        "scheme": "bearer",
        "bearerFormat": "JWT",
    }
    for path, operations in schema.get("paths", {}).items():
        for method, operation in operations.items():
            if (method.upper(), path) not in PUBLIC_API:
                operation["security"] = [{"SessionBearer": []}]

    app.openapi_schema = schema
    return app.openapi_schema
