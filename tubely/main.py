"""
➡️ But : assembler toutes les pièces du puzzle.

Crée l'instance FastAPI (app), configure CORS + logs JSON, inclut les routers
(/api/v1/auth, /api/v1/videos) et initialise la base au démarrage.

Point unique d'exécution : uvicorn tubely.main:app --reload.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from tubely.core.config import settings
from tubely.core.logging import setup_logging
from tubely.core.openapi import custom_openapi
from tubely.db.session import init_db

from tubely.api.v1.body_limits import limit_upload_body
from tubely.api.v1.routers import authentication, videos

setup_logging()

app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    openapi_tags=[
        {"name": "auth", "description": "Opérations liées à l'authentification"},
        {"name": "videos", "description": "Métadonnées, upload et miniatures des vidéos"},
    ],
)

# CORS (ajustez selon vos besoins)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"], allow_credentials=True,
    allow_methods=["*"], allow_headers=["*"],
)

# Limite de taille des uploads (Content-Length), avant le parsing multipart
app.middleware("http")(limit_upload_body)

# Routers
app.include_router(authentication.router, prefix="/api/v1")
app.include_router(videos.router, prefix="/api/v1")

app.openapi = lambda: custom_openapi(app)

# Démarrage
@app.on_event("startup")
def on_startup():
    init_db()

if __name__ == "__main__":
    uvicorn.run("tubely.main:app", host="127.0.0.1", port=8091, reload=(settings.ENV == "dev"))
