"""
➡️ But : Traiter l'upload d'une vidéo, de bout en bout, pour une requête.

RECEIVING -> STAGED -> TRANSCODING -> TRANSCODED -> CLASSIFYING -> CLASSIFIED
          -> UPLOADING -> PERSISTED
Depuis n'importe quel état non terminal : -> FAILED.

Les fichiers temporaires (copie de l'upload + sortie ffmpeg) vivent dans un
répertoire temporaire propre à la requête, supprimé à la sortie quel que soit
le résultat.
"""

import logging
import os
import tempfile
from enum import Enum
from typing import BinaryIO, Optional

from fastapi import HTTPException, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError

from tubely.core.config import settings
from tubely.core.exceptions import MediaProbeError, MediaTranscodeError, StorageUploadError
from tubely.db.models.videos import Video
from tubely.db.repositories.videos import VideoRepository
from tubely.utils.ffmpeg import AspectBucket, MediaToolkit, TranscodeResult, classify_aspect_ratio
from tubely.utils.media_files import (
    build_object_key,
    media_type_to_extension,
    parse_media_type,
    random_file_name,
)
from tubely.utils.s3 import S3Factories, StoredObjectRef, upload_file

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


class UploadState(str, Enum):
    RECEIVING = "receiving"
    STAGED = "staged"
    TRANSCODING = "transcoding"
    TRANSCODED = "transcoded"
    CLASSIFYING = "classifying"
    CLASSIFIED = "classified"
    UPLOADING = "uploading"
    PERSISTED = "persisted"
    FAILED = "failed"


class VideoUploadService:
    """
    Pipeline d'upload vidéo (une instance par requête).

    `state` suit la progression ; en cas d'échec il vaut FAILED et
    `failed_from` indique l'état dans lequel l'erreur est survenue.
    """

    def __init__(
        self,
        *,
        repo: VideoRepository,
        toolkit: MediaToolkit,
        s3: S3Factories = S3Factories(),
        tmp_dir: Optional[str] = None,
    ):
        self.repo = repo
        self.toolkit = toolkit
        self.s3 = s3
        self.settings = settings
        self.tmp_dir = tmp_dir if tmp_dir is not None else settings.UPLOAD_TMP_DIR
        self.state = UploadState.RECEIVING
        self.failed_from: Optional[UploadState] = None

    def upload(self, video: Video, file: UploadFile) -> Video:
        try:
            return self._run(video, file)
        except Exception:
            self.failed_from = self.state
            self.state = UploadState.FAILED
            logger.warning(
                "Video upload failed",
                extra={"video_id": str(video.id), "failed_from": self.failed_from.value},
            )
            raise

    def _run(self, video: Video, file: UploadFile) -> Video:
        media_type = self._check_media_type(file.content_type)

        with tempfile.TemporaryDirectory(prefix="tubely-upload_", dir=self.tmp_dir) as work_dir:
            staged_path = os.path.join(work_dir, "upload" + media_type_to_extension(media_type))
            self._stage(file.file, staged_path)
            self.state = UploadState.STAGED

            self.state = UploadState.TRANSCODING
            transcoded = self._transcode(staged_path)
            self.state = UploadState.TRANSCODED

            # classification sur le fichier d'origine : le remux copie les flux tels quels
            self.state = UploadState.CLASSIFYING
            bucket = self._classify(staged_path)
            self.state = UploadState.CLASSIFIED

            key = build_object_key(bucket.value, random_file_name(media_type))
            self.state = UploadState.UPLOADING
            self._store(transcoded, key=key, media_type=media_type)

            video = self._persist(video, StoredObjectRef(bucket=self.settings.S3_BUCKET, key=key))
            self.state = UploadState.PERSISTED

        logger.info("Video upload complete", extra={"video_id": str(video.id), "key": key})
        return video

    # ---------- Étapes ----------

    def _check_media_type(self, content_type: Optional[str]) -> str:
        media_type = parse_media_type(content_type)
        if media_type is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid Content-Type")
        if media_type != self.settings.SUPPORTED_VIDEO_MIME:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid media type, only {self.settings.SUPPORTED_VIDEO_MIME} is supported",
            )
        return media_type

    def _stage(self, source: BinaryIO, path: str) -> None:
        limit = self.settings.MAX_VIDEO_UPLOAD_BYTES
        written = 0
        try:
            with open(path, "wb") as out:
                for chunk in iter(lambda: source.read(CHUNK_SIZE), b""):
                    written += len(chunk)
                    if written > limit:
                        raise HTTPException(
                            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                            detail=f"Video too large (max {limit} bytes)",
                        )
                    out.write(chunk)
        except OSError as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Couldn't write file to disk: {e}",
            ) from e
        logger.info("Upload staged", extra={"path": path, "bytes": written})

    def _transcode(self, path: str) -> TranscodeResult:
        try:
            return self.toolkit.remux(path)
        except MediaTranscodeError as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Couldn't process video: {e}",
            ) from e

    def _classify(self, path: str) -> AspectBucket:
        try:
            info = self.toolkit.probe(path)
        except MediaProbeError as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Couldn't handle aspect ratio: {e}",
            ) from e
        bucket = classify_aspect_ratio(info.width, info.height)
        logger.info(
            "Aspect ratio classified",
            extra={"width": info.width, "height": info.height, "bucket": bucket.value},
        )
        return bucket

    def _store(self, transcoded: TranscodeResult, *, key: str, media_type: str) -> None:
        s3 = self.s3.internal()
        try:
            upload_file(
                s3,
                transcoded.path,
                bucket=self.settings.S3_BUCKET,
                key=key,
                content_type=media_type,
            )
        except StorageUploadError as e:
            logger.exception("Object store upload failed", extra={"key": key})
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=f"Issue uploading video to object store: {e}",
            ) from e
        logger.info("Video uploaded", extra={"key": key, "bytes": transcoded.size})

    def _persist(self, video: Video, ref: StoredObjectRef) -> Video:
        try:
            return self.repo.update(video, video_url=ref.to_field())
        except SQLAlchemyError as e:
            self.repo.session.rollback()
            # pas de rollback côté object store : l'objet reste orphelin
            logger.exception("Video metadata update failed, object orphaned", extra={"key": ref.key})
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Couldn't update video information: {e}",
            ) from e
