"""Exceptions métier levées par les utilitaires média / stockage.

Les services les traduisent en HTTPException (voir features/videos).
"""

from typing import Optional


class MediaToolError(Exception):
    """Échec d'un outil externe (ffprobe / ffmpeg)."""

    def __init__(self, message: str, *, path: str, stderr: str = "", cause: Optional[Exception] = None):
        self.path = path
        self.stderr = stderr
        self.cause = cause
        detail = f"{message}: {stderr.strip()}" if stderr.strip() else message
        super().__init__(detail)


class MediaProbeError(MediaToolError):
    """ffprobe a échoué ou sa sortie est inexploitable."""


class MediaTranscodeError(MediaToolError):
    """ffmpeg a échoué ou a produit un fichier vide."""


class StorageUploadError(Exception):
    """Écriture impossible d'un objet dans l'object store (S3 / MinIO)."""

    def __init__(self, key: str, cause: Optional[Exception] = None):
        self.key = key
        self.cause = cause
        super().__init__(f"Failed to upload object '{key}': {cause}")


class PresignError(Exception):
    """Génération impossible d'une URL GET signée."""

    def __init__(self, bucket: str, key: str, cause: Optional[Exception] = None):
        self.bucket = bucket
        self.key = key
        self.cause = cause
        super().__init__(f"Couldn't create presign URL for '{bucket}/{key}': {cause}")
