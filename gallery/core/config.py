"""
➡️ But : Centraliser tous les paramètres configurables (nom d'app, chemin DB, secrets Cloudinary, auth...)

Utilise pydantic-settings pour charger automatiquement les variables d'environnement (.env, variables système…).

Fournit un objet settings unique, que tu importes ailleurs :

from gallery.core.config import settings
print(settings.APP_NAME)

create_app() accepte aussi une instance Settings explicite (tests, scripts).


🔹 Avantages :

Plus propre que des constantes éparpillées dans le code.

Facilite le passage entre environnements (dev / prod / test).
"""

from datetime import timedelta
from typing import List, Optional

from pydantic_settings import BaseSettings
from gallery.security.tokens import JWTSettings


class Settings(BaseSettings):
    # -----------------------------
    # App
    # -----------------------------
    APP_NAME: str = "Video-Gallery"
    ENV: str = "dev"  # dev | prod | test
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]  # En prod, remplacer "*" par l'URL du front

    # -----------------------------
    # DB
    # -----------------------------
    SQLITE_PATH: str = "gallery.db"  # fichier SQLite
    # Si tu veux forcer une URL différente (ex: Postgres), définis DATABASE_URL dans l'env.
    DATABASE_URL: Optional[str] = None

    # -----------------------------
    # Media (Cloudinary)
    # -----------------------------
    CLOUDINARY_CLOUD_NAME: Optional[str] = None
    CLOUDINARY_API_KEY: Optional[str] = None
    CLOUDINARY_API_SECRET: Optional[str] = None

    VIDEO_FOLDER: str = "video-uploads"
    IMAGE_FOLDER: str = "image-uploads"
    MAX_VIDEO_UPLOAD_MB: int = 70
    MAX_IMAGE_UPLOAD_MB: int = 10

    # -----------------------------
    # Auth (sessions émises par le fournisseur d'identité)
    # -----------------------------
    AUTH_JWT_SECRET: str = "CHANGE_ME"     # ⚠️ change en prod
    AUTH_JWT_ISSUER: str = "video-gallery"
    AUTH_JWT_ALGORITHM: str = "HS256"
    SESSION_TTL_MINUTES: int = 60

    AUTH_SESSION_COOKIE: str = "__session"
    SIGN_IN_URL: str = "/sign-in"
    HOME_URL: str = "/home"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }

    # -----------------------------
    # Post-process values
    # -----------------------------
    def model_post_init(self, __context): # appelée automatiquement
        # DATABASE_URL par défaut depuis SQLITE_PATH si non fourni
        if not self.DATABASE_URL:
            object.__setattr__(self, "DATABASE_URL", f"sqlite:///{self.SQLITE_PATH}")

    @property
    def cloudinary_configured(self) -> bool:
        return bool(self.CLOUDINARY_CLOUD_NAME and self.CLOUDINARY_API_KEY and self.CLOUDINARY_API_SECRET)

    @property
    def jwt_settings(self) -> JWTSettings:
        return JWTSettings(
            secret=self.AUTH_JWT_SECRET,
            issuer=self.AUTH_JWT_ISSUER,
            algorithm=self.AUTH_JWT_ALGORITHM,
            session_ttl=timedelta(minutes=self.SESSION_TTL_MINUTES),
        )


# Instance globale importable partout
settings = Settings()
