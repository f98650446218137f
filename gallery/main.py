"""
➡️ But : assembler toutes les pièces du puzzle.

create_app() crée l'instance FastAPI et configure :

le logging,

CORS (autorisations de qui peut appeler ces API) et le contrôle d'accès aux routes,

titre, version, tags, schéma OpenAPI personnalisé,

le format d'erreur commun.

Inclut les routers (ex : /api/video-upload).

Ouvre la base au démarrage et la ferme à l'arrêt (@app.on_event).

🔹 Avantages :

Centralise la configuration du serveur HTTP.

Point unique d'exécution : uvicorn gallery.main:app --reload.
"""

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gallery.core.config import Settings, settings as default_settings
from gallery.core.errors import register_exception_handlers
from gallery.core.logging import configure_logging
from gallery.core.openapi import custom_openapi
from gallery.db.session import Database
from gallery.security.access import AccessControlMiddleware

from gallery.api.v1.routers import images, videos

import uvicorn


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        version="0.1.0",
        openapi_tags=[
            {"name": "videos", "description": "Upload, listing et suppression des vidéos"},
            {"name": "images", "description": "Upload d'images (sans persistance)"},
        ],
    )
    app.state.settings = settings
    app.state.db = Database(settings.DATABASE_URL, echo=(settings.ENV == "dev"))

    register_exception_handlers(app)

    # Le dernier middleware ajouté est le plus externe : CORS passe avant le contrôle d'accès
    app.add_middleware(AccessControlMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS, allow_credentials=True,
        allow_methods=["*"], allow_headers=["*"],
    )

    # Routers
    app.include_router(videos.router, prefix="/api")
    app.include_router(images.router, prefix="/api")

    @app.get("/", include_in_schema=False)
    def root():
        return {"app": settings.APP_NAME, "status": "running"}

    # Génération du schéma OpenAPI custom
    app.openapi = lambda: custom_openapi(app)

    # Démarrage / arrêt
    @app.on_event("startup")
    def on_startup():
        app.state.db.connect()

    @app.on_event("shutdown")
    def on_shutdown():
        app.state.db.close()

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("gallery.main:app", host="127.0.0.1", port=8080, reload=(default_settings.ENV == "dev")) # http://localhost:8080
