"""
➡️ But : Centraliser tous les paramètres configurables (nom d'app, DB, S3, outils média, secrets...)

Utilise pydantic-settings pour charger automatiquement les variables d'environnement (.env, variables système…).

Fournit un objet settings unique, que tu importes ailleurs :

from tubely.core.config import settings
print(settings.S3_BUCKET)


🔹 Avantages :

Plus propre que des constantes éparpillées dans le code.

Facilite le passage entre environnements (dev / prod / test).
"""

from datetime import timedelta
from typing import Optional

from pydantic_settings import BaseSettings
from tubely.security.tokens import JWTSettings


class Settings(BaseSettings):
    # -----------------------------
    # App
    # -----------------------------
    APP_NAME: str = "Tubely-Back"
    ENV: str = "dev"  # dev | prod | test
    LOG_LEVEL: str = "INFO"

    # -----------------------------
    # DB
    # -----------------------------
    SQLITE_PATH: str = "tubely.db"  # fichier SQLite
    # Si tu veux forcer une URL différente (ex: Postgres), définis DATABASE_URL dans l'env.
    DATABASE_URL: Optional[str] = None

    # -----------------------------
    # JWT / Auth
    # -----------------------------
    JWT_SECRET_KEY: str = "CHANGE_ME"     # ⚠️ change en prod
    JWT_ISSUER: str = "tubely"
    JWT_ALGORITHM: str = "HS256"

    ACCESS_TTL_MINUTES: int = 60

    # -----------------------------
    # S3 / MinIO
    # -----------------------------
    S3_ENDPOINT: Optional[str] = None          # None -> AWS S3 standard
    S3_PUBLIC_ENDPOINT: Optional[str] = None   # endpoint vu par les clients (URLs signées)
    S3_REGION: str = "us-east-1"
    S3_KEY: Optional[str] = None
    S3_SECRET: Optional[str] = None
    S3_BUCKET: str = "tubely"

    PRESIGN_TTL_SECONDS: int = 600  # 10 minutes

    # -----------------------------
    # Uploads
    # -----------------------------
    SUPPORTED_VIDEO_MIME: str = "video/mp4"
    MAX_VIDEO_UPLOAD_BYTES: int = 1 << 30       # 1 GiB
    MAX_THUMBNAIL_UPLOAD_BYTES: int = 10 << 20  # 10 MiB
    UPLOAD_TMP_DIR: Optional[str] = None        # None -> répertoire temporaire système
    MULTIPART_OVERHEAD_BYTES: int = 1 << 20     # marge pour l'enveloppe multipart (limite Content-Length)

    # -----------------------------
    # Outils média (ffprobe / ffmpeg)
    # -----------------------------
    FFPROBE_BIN: str = "ffprobe"
    FFMPEG_BIN: str = "ffmpeg"
    MEDIA_TOOL_TIMEOUT_SECONDS: float = 300.0

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }

    # -----------------------------
    # Post-process values
    # -----------------------------
    def model_post_init(self, __context): # appelée automatiquement
        # DATABASE_URL par défaut depuis SQLITE_PATH si non fourni
        if not self.DATABASE_URL:
            object.__setattr__(self, "DATABASE_URL", f"sqlite:///{self.SQLITE_PATH}")

        # Par défaut les URLs signées pointent sur le même endpoint que le back
        if self.S3_PUBLIC_ENDPOINT is None:
            object.__setattr__(self, "S3_PUBLIC_ENDPOINT", self.S3_ENDPOINT)


# Instance globale importable partout
settings = Settings()

# Objet JWT prêt à l'emploi pour les services
jwt_settings = JWTSettings(
    secret=settings.JWT_SECRET_KEY,
    issuer=settings.JWT_ISSUER,
    algorithm=settings.JWT_ALGORITHM,
    access_ttl=timedelta(minutes=settings.ACCESS_TTL_MINUTES),
)
