"""
➡️ But : Refuser les uploads trop gros AVANT que le corps multipart soit lu.

FastAPI parse le formulaire (et spoole le fichier sur disque) avant d'appeler
la route et ses dépendances : la limite doit donc vivre dans un middleware.
On se base sur Content-Length ; un corps sans Content-Length (chunked) passe,
la limite du pipeline s'applique alors pendant la copie.
"""

import re
from typing import Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse

from tubely.core.config import settings

_VIDEO_UPLOAD_PATH = re.compile(r"^/api/v1/videos/[^/]+/upload/?$")
_THUMBNAIL_UPLOAD_PATH = re.compile(r"^/api/v1/videos/[^/]+/thumbnail/?$")


def max_body_bytes(path: str) -> Optional[int]:
    """Taille max du corps pour ce chemin (fichier + enveloppe multipart), None si pas de limite."""
    if _VIDEO_UPLOAD_PATH.match(path):
        return settings.MAX_VIDEO_UPLOAD_BYTES + settings.MULTIPART_OVERHEAD_BYTES
    if _THUMBNAIL_UPLOAD_PATH.match(path):
        return settings.MAX_THUMBNAIL_UPLOAD_BYTES + settings.MULTIPART_OVERHEAD_BYTES
    return None


async def limit_upload_body(request: Request, call_next):
    limit = max_body_bytes(request.url.path) if request.method == "POST" else None
    if limit is not None:
        declared = request.headers.get("content-length")
        if declared is not None and declared.isdigit() and int(declared) > limit:
            return JSONResponse(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                content={"detail": f"Request body too large (max {limit} bytes)"},
            )
    return await call_next(request)
