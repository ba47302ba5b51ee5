"""
➡️ But : Personnaliser la documentation Swagger/OpenAPI.
"""

from fastapi.openapi.utils import get_openapi

def custom_openapi(app):
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=(
            "API d'hébergement vidéo FastAPI + S3/MinIO.\n\n"
            "### Conventions\n"
            "- Toutes les heures sont en UTC.\n"
            "- Authentification : `Authorization: Bearer <access_token>`.\n"
            "- Upload vidéo : `video/mp4` uniquement, ≤ 1 GiB, champ multipart `video`.\n"
            "- Upload miniature : image ≤ 10 MiB, champ multipart `thumbnail`.\n"
            "- `video_url` / `thumbnail_url` sont des URLs signées valables 10 minutes.\n"
        ),
        routes=app.routes,
    )
    app.openapi_schema = openapi_schema
    return app.openapi_schema
