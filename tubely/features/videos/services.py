import logging
import uuid
from typing import List, Optional

from fastapi import HTTPException, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError

from tubely.core.config import settings
from tubely.core.exceptions import PresignError, StorageUploadError
from tubely.db.models.videos import Video
from tubely.db.repositories.videos import VideoRepository
from tubely.features.videos.schemas import VideoCreateIn, VideoOut
from tubely.utils.media_files import build_object_key, random_file_name, validate_thumbnail
from tubely.utils.s3 import S3Factories, StoredObjectRef, sign_stored_url, upload_bytes

logger = logging.getLogger(__name__)

THUMBNAIL_PREFIX = "thumbnails"


def parse_video_id(video_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(video_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid ID") from e


class VideoService:
    """
    Service Vidéos : orchestre repository + S3/MinIO.
    Aucune logique SQL directe ici, erreurs en HTTPException propres.
    """

    def __init__(self, *, repo: VideoRepository, s3: S3Factories = S3Factories()):
        self.repo = repo
        self.s3 = s3
        self.settings = settings

    # ---------- Accès ----------

    def get_owned(self, video_id: str, *, user_id: int) -> Video:
        video = self.repo.get(parse_video_id(video_id))
        if not video:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Couldn't find video")
        if video.owner_id != user_id:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authorized to access this video")
        return video

    # ---------- Lecture (références -> URLs signées) ----------

    def to_signed(self, video: Video) -> VideoOut:
        s3 = self.s3.public()
        ttl = self.settings.PRESIGN_TTL_SECONDS
        try:
            video_url = sign_stored_url(s3, video.video_url, ttl=ttl)
            thumbnail_url = sign_stored_url(s3, video.thumbnail_url, ttl=ttl)
        except PresignError as e:
            logger.exception("Presign failed", extra={"video_id": str(video.id), "key": e.key})
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e

        return VideoOut(
            id=video.id,
            title=video.title,
            description=video.description,
            owner_id=video.owner_id,
            thumbnail_url=thumbnail_url,
            video_url=video_url,
            created_at=video.created_at,
            updated_at=video.updated_at,
        )

    def get_signed(self, video_id: str, *, user_id: int) -> VideoOut:
        return self.to_signed(self.get_owned(video_id, user_id=user_id))

    def list_mine(self, *, user_id: int, offset: int = 0, limit: int = 100) -> List[VideoOut]:
        videos = self.repo.list_for_owner(user_id, offset=offset, limit=limit)
        return [self.to_signed(v) for v in videos]

    # ---------- Écriture ----------

    def create(self, payload: VideoCreateIn, *, owner_id: int) -> Video:
        return self.repo.create(
            title=payload.title,
            description=payload.description,
            owner_id=owner_id,
        )

    def delete(self, video_id: str, *, user_id: int) -> None:
        video = self.get_owned(video_id, user_id=user_id)
        refs = [
            ref for ref in (
                StoredObjectRef.parse(video.video_url),
                StoredObjectRef.parse(video.thumbnail_url),
            )
            if ref is not None
        ]
        s3 = self.s3.internal()
        try:
            for ref in refs:
                s3.delete_object(Bucket=ref.bucket, Key=ref.key)
        except Exception as e:
            # On supprime tout de même la ligne : les objets restants sont orphelins
            logger.exception("Object delete failed", extra={"video_id": str(video.id)})
            self.repo.delete(video)
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Object store error: {e}") from e
        self.repo.delete(video)


class ThumbnailService:
    """
    Upload de miniature : validation -> object store -> référence en DB.
    Rien n'est gardé en mémoire entre deux requêtes.
    """

    def __init__(self, *, repo: VideoRepository, s3: S3Factories = S3Factories()):
        self.repo = repo
        self.s3 = s3
        self.settings = settings

    def upload(self, video: Video, file: UploadFile) -> Video:
        max_bytes = self.settings.MAX_THUMBNAIL_UPLOAD_BYTES
        raw = file.file.read(max_bytes + 1)
        try:
            mime, size = validate_thumbnail(raw, declared_type=file.content_type, max_bytes=max_bytes)
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

        key = build_object_key(THUMBNAIL_PREFIX, random_file_name(mime))
        bucket = self.settings.S3_BUCKET
        s3 = self.s3.internal()
        try:
            upload_bytes(s3, raw, bucket=bucket, key=key, content_type=mime)
        except StorageUploadError as e:
            logger.exception("Thumbnail upload failed", extra={"video_id": str(video.id), "key": key})
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Issue uploading thumbnail: {e}") from e

        logger.info("Thumbnail uploaded", extra={"video_id": str(video.id), "key": key, "bytes": size})
        return self._persist(video, StoredObjectRef(bucket=bucket, key=key))

    def _persist(self, video: Video, ref: StoredObjectRef) -> Video:
        try:
            return self.repo.update(video, thumbnail_url=ref.to_field())
        except SQLAlchemyError as e:
            self.repo.session.rollback()
            logger.exception("Thumbnail metadata update failed, object orphaned", extra={"key": ref.key})
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Couldn't update video information: {e}",
            ) from e
