from typing import Optional, Set, Tuple
import filetype


# Allow-lists (type réel détecté, pas celui annoncé par le navigateur)
ALLOWED_IMAGE_MIME: Set[str] = {"image/jpeg", "image/png", "image/webp", "image/avif", "image/gif"}

ALLOWED_VIDEO_MIME: Set[str] = {
    "video/mp4",
    "video/webm",
    "video/quicktime",   # mov
    "video/x-matroska",  # mkv (selon filetype)
    "video/x-msvideo",   # avi
    "video/x-m4v",
    "video/mpeg",
}

MB = 1024 * 1024


class FileTooLarge(ValueError):
    """Le fichier dépasse le plafond configuré."""


def detect_mime(file_bytes: bytes) -> Optional[str]:
    """Détecte le type réel via 'filetype' (None si inconnu)."""
    kind = filetype.guess(file_bytes)
    return kind.mime if kind else None


def validate_bytes(file_bytes: bytes, *, max_mb: int, allowed_mime: Set[str]) -> Tuple[str, int]:
    """
    Retourne (real_mime, size_bytes).
    Lève FileTooLarge au-delà de max_mb, ValueError si vide ou type non autorisé.
    """
    size = len(file_bytes)
    if size == 0:
        raise ValueError("Empty file")
    if size > max_mb * MB:
        raise FileTooLarge(f"File too large (max {max_mb} MB)")

    real_mime = detect_mime(file_bytes) or "application/octet-stream"
    if real_mime not in allowed_mime:
        raise ValueError(f"Unsupported file type: {real_mime}")
    return real_mime, size


def parse_original_size(raw: Optional[str], *, fallback: int) -> int:
    """
    `originalSize` du formulaire : entier décimal strictement positif.
    Absent/vide -> taille reçue par le serveur.
    """
    if raw is None or not raw.strip():
        return fallback
    value = raw.strip()
    if not value.isdigit():
        raise ValueError("originalSize must be a positive integer")
    size = int(value)
    if size <= 0:
        raise ValueError("originalSize must be a positive integer")
    return size
