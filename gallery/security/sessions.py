from dataclasses import dataclass
from typing import Optional

from jose import JWTError
from starlette.requests import HTTPConnection

from gallery.security.tokens import JWTSettings, decode_token


@dataclass(frozen=True)
class SessionUser:
    user_id: str
    session_id: Optional[str] = None


def extract_token(conn: HTTPConnection, cookie_name: str) -> Optional[str]:
    """Bearer en priorité, puis cookie de session posé par le fournisseur d'identité."""
    auth = conn.headers.get("Authorization")
    if auth:
        scheme, _, credentials = auth.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
    cookie = conn.cookies.get(cookie_name)
    return cookie or None


def resolve_session(conn: HTTPConnection, jwt_settings: JWTSettings, cookie_name: str) -> Optional[SessionUser]:
    token = extract_token(conn, cookie_name)
    if not token:
        return None
    try:
        decoded = decode_token(token, jwt_settings)
    except JWTError:
        return None
    return SessionUser(user_id=str(decoded["sub"]), session_id=decoded.get("sid"))
