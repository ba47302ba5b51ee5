from typing import List

from fastapi import APIRouter, Depends, File, UploadFile, status

from tubely.api.v1.dependencies import (
    get_current_user,
    get_thumbnail_service,
    get_video_service,
    get_video_upload_service,
    pagination,
)
from tubely.db.models.users import User
from tubely.features.videos.schemas import VideoCreateIn, VideoOut
from tubely.features.videos.services import ThumbnailService, VideoService
from tubely.features.videos.upload import VideoUploadService

router = APIRouter(
    prefix="/videos",
    tags=["videos"],
    responses={404: {"description": "Not Found"}},
)

# -----------------------------
# Métadonnées
# -----------------------------
@router.post(
    "",
    summary="Créer une vidéo (brouillon, sans fichier)",
    status_code=status.HTTP_201_CREATED,
    response_model=VideoOut,
)
def create_video(
    payload: VideoCreateIn,
    user: User = Depends(get_current_user),
    video_svc: VideoService = Depends(get_video_service),
):
    video = video_svc.create(payload, owner_id=user.id)
    return video_svc.to_signed(video)

@router.get("", summary="Lister mes vidéos", response_model=List[VideoOut])
def list_videos(
    page=Depends(pagination),
    user: User = Depends(get_current_user),
    video_svc: VideoService = Depends(get_video_service),
):
    return video_svc.list_mine(user_id=user.id, **page)

@router.get("/{video_id}", summary="Obtenir une vidéo (URLs signées)", response_model=VideoOut)
def get_video(
    video_id: str,
    user: User = Depends(get_current_user),
    video_svc: VideoService = Depends(get_video_service),
):
    return video_svc.get_signed(video_id, user_id=user.id)

@router.delete(
    "/{video_id}",
    summary="Supprimer une vidéo (objets + ligne DB)",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_video(
    video_id: str,
    user: User = Depends(get_current_user),
    video_svc: VideoService = Depends(get_video_service),
):
    video_svc.delete(video_id, user_id=user.id)
    return None

# -----------------------------
# Uploads
# Routes synchrones : FastAPI les exécute dans son threadpool, les appels
# ffmpeg / S3 bloquants ne gèlent pas la boucle d'événements.
# -----------------------------
@router.post(
    "/{video_id}/upload",
    summary="Uploader le fichier vidéo (mp4 → fast start → S3)",
    response_model=VideoOut,
)
def upload_video(
    video_id: str,
    video: UploadFile = File(...),
    user: User = Depends(get_current_user),
    video_svc: VideoService = Depends(get_video_service),
    upload_svc: VideoUploadService = Depends(get_video_upload_service),
):
    record = video_svc.get_owned(video_id, user_id=user.id)
    record = upload_svc.upload(record, video)
    return video_svc.to_signed(record)

@router.post(
    "/{video_id}/thumbnail",
    summary="Uploader la miniature",
    response_model=VideoOut,
)
def upload_thumbnail(
    video_id: str,
    thumbnail: UploadFile = File(...),
    user: User = Depends(get_current_user),
    video_svc: VideoService = Depends(get_video_service),
    thumbnail_svc: ThumbnailService = Depends(get_thumbnail_service),
):
    record = video_svc.get_owned(video_id, user_id=user.id)
    record = thumbnail_svc.upload(record, thumbnail)
    return video_svc.to_signed(record)
