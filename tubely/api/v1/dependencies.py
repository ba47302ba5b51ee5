"""
➡️ But : Centraliser les dépendances réutilisables des routes.

Services construits par requête à partir d'une session DB, des fabriques S3
et de la boîte à outils média (remplaçables en test via dependency_overrides).
"""

from fastapi import Depends, HTTPException, Query, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from tubely.core.config import jwt_settings, settings
from tubely.db.models.users import User
from tubely.db.repositories.users import UserRepository
from tubely.db.repositories.videos import VideoRepository
from tubely.db.session import get_session
from tubely.features.authentication.services import AuthService
from tubely.features.videos.services import ThumbnailService, VideoService
from tubely.features.videos.upload import VideoUploadService
from tubely.utils.ffmpeg import FFmpegToolkit, MediaToolkit
from tubely.utils.s3 import S3Factories


def pagination(
    page: int = Query(1, ge=1, description="Numéro de page", examples=[1]),
    size: int = Query(20, ge=1, le=100, description="Taille de page", examples=[20]),
):
    offset = (page - 1) * size
    return {"offset": offset, "limit": size}


# -----------------------------
# Infrastructure
# -----------------------------
def get_s3_factories() -> S3Factories:
    return S3Factories()

def get_media_toolkit() -> MediaToolkit:
    return FFmpegToolkit(
        ffprobe_bin=settings.FFPROBE_BIN,
        ffmpeg_bin=settings.FFMPEG_BIN,
        timeout=settings.MEDIA_TOOL_TIMEOUT_SECONDS,
    )


# -----------------------------
# Repositories
# -----------------------------
def get_user_repository(session: Session = Depends(get_session)) -> UserRepository:
    return UserRepository(session)

def get_video_repository(session: Session = Depends(get_session)) -> VideoRepository:
    return VideoRepository(session)


# -----------------------------
# Auth
# -----------------------------
def get_auth_service(user_repo: UserRepository = Depends(get_user_repository)) -> AuthService:
    return AuthService(user_repo=user_repo, jwt_settings=jwt_settings)

bearer_scheme = HTTPBearer(auto_error=False)

def get_access_token_from_bearer(
    credentials: HTTPAuthorizationCredentials = Security(bearer_scheme),
) -> str:
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Couldn't find JWT")
    return credentials.credentials

def get_current_user(
    access_token: str = Depends(get_access_token_from_bearer),
    auth_svc: AuthService = Depends(get_auth_service),
) -> User:
    return auth_svc.get_current_user(access_token=access_token)


# -----------------------------
# Media services
# -----------------------------
def get_video_service(
    video_repo: VideoRepository = Depends(get_video_repository),
    s3: S3Factories = Depends(get_s3_factories),
) -> VideoService:
    return VideoService(repo=video_repo, s3=s3)

def get_thumbnail_service(
    video_repo: VideoRepository = Depends(get_video_repository),
    s3: S3Factories = Depends(get_s3_factories),
) -> ThumbnailService:
    return ThumbnailService(repo=video_repo, s3=s3)

def get_video_upload_service(
    video_repo: VideoRepository = Depends(get_video_repository),
    toolkit: MediaToolkit = Depends(get_media_toolkit),
    s3: S3Factories = Depends(get_s3_factories),
) -> VideoUploadService:
    return VideoUploadService(repo=video_repo, toolkit=toolkit, s3=s3)
