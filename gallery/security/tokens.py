"""
➡️ But : Valider les tokens de session émis par le fournisseur d'identité.

Le backend ne gère ni mots de passe ni refresh : il vérifie seulement la
signature, l'expiration et l'émetteur du JWT présenté par le navigateur.

create_session_token() n'existe que pour le dev et les tests (en prod,
c'est le fournisseur qui signe).
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt, JWTError


@dataclass(frozen=True)
class JWTSettings:
    """
    - `secret` : clé partagée avec le fournisseur d'identité
    - `issuer` : claim `iss` attendu
    - `algorithm` : algo de signature (HS256 recommandé)
    - `session_ttl` : durée de vie des tokens signés localement
    """
    secret: str
    issuer: str = "video-gallery"
    algorithm: str = "HS256"
    session_ttl: timedelta = timedelta(minutes=60)


# Claims utilisés : sub (utilisateur), sid (session), iss, iat, exp
Claims = Dict[str, Any]


def create_session_token(
    *,
    user_id: str,
    settings: JWTSettings,
    ttl: Optional[timedelta] = None,
) -> str:
    issued_at = datetime.now(timezone.utc)
    expires_at = issued_at + (settings.session_ttl if ttl is None else ttl)
    claims: Claims = {
        "iss": settings.issuer,
        "sub": str(user_id),
        "sid": uuid.uuid4().hex,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(claims, settings.secret, algorithm=settings.algorithm)


def decode_token(token: str, settings: JWTSettings) -> Claims:
    """Lève JWTError si la signature, l'expiration, l'émetteur ou le sujet ne vont pas."""
    claims = jwt.decode(
        token,
        settings.secret,
        algorithms=[settings.algorithm],
        issuer=settings.issuer,
        options={"verify_aud": False},
    )
    if not claims.get("sub"):
        raise JWTError("Missing subject")
    return claims
