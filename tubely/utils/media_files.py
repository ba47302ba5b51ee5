import base64
import secrets
from typing import Optional, Set, Tuple

import filetype


ALLOWED_THUMBNAIL_MIME: Set[str] = {"image/jpeg", "image/png", "image/webp", "image/gif"}

FALLBACK_EXTENSION = ".bin"


def parse_media_type(content_type: Optional[str]) -> Optional[str]:
    """
    'video/mp4; codecs="avc1"' -> 'video/mp4'.
    Retourne None si l'en-tête est absent ou vide.
    """
    if not content_type:
        return None
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type or None


def media_type_to_extension(media_type: str) -> str:
    """
    'video/mp4' -> '.mp4'. Un type mal formé ne fait jamais échouer l'upload :
    on retombe sur '.bin'.
    """
    parts = media_type.split("/")
    if len(parts) != 2:
        return FALLBACK_EXTENSION
    return "." + parts[1]


def random_file_name(media_type: str) -> str:
    """
    Nom d'objet aléatoire : 32 octets (CSPRNG) en base64 URL-safe sans padding,
    suivi de l'extension déduite du type MIME.
    """
    stem = base64.urlsafe_b64encode(secrets.token_bytes(32)).rstrip(b"=").decode("ascii")
    return f"{stem}{media_type_to_extension(media_type)}"


def build_object_key(prefix: str, file_name: str) -> str:
    """
    Exemple:
      build_object_key("landscape", "abc123.mp4") -> "landscape/abc123.mp4"
    """
    return f"{prefix}/{file_name}"


def detect_mime(file_bytes: bytes) -> str:
    """Détecte le type réel via 'filetype'."""
    kind = filetype.guess(file_bytes)
    return kind.mime if kind else "application/octet-stream"


def validate_thumbnail(
    file_bytes: bytes,
    *,
    declared_type: Optional[str],
    max_bytes: int,
) -> Tuple[str, int]:
    """
    Retourne (real_mime, size_bytes).
    Lève ValueError si invalide.
    """
    if parse_media_type(declared_type) is None:
        raise ValueError("Missing Content-Type for thumbnail")

    size = len(file_bytes)
    if size == 0:
        raise ValueError("Empty thumbnail")
    if size > max_bytes:
        raise ValueError(f"Thumbnail too large (max {max_bytes} bytes)")

    real_mime = detect_mime(file_bytes)
    if real_mime not in ALLOWED_THUMBNAIL_MIME:
        raise ValueError(f"Unsupported thumbnail type: {real_mime}")
    return real_mime, size
