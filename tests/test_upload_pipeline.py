import io
import os

import pytest
from botocore.exceptions import ClientError
from fastapi import HTTPException, UploadFile
from sqlalchemy.exc import OperationalError
from starlette.datastructures import Headers

from conftest import MP4_BYTES, FakeToolkit
from tubely.core.exceptions import MediaProbeError, MediaTranscodeError, StorageUploadError
from tubely.db.repositories.videos import VideoRepository
from tubely.features.videos.upload import UploadState, VideoUploadService
from tubely.utils.s3 import StoredObjectRef


def _upload_file(data=MP4_BYTES, content_type="video/mp4"):
    return UploadFile(
        file=io.BytesIO(data),
        filename="clip.mp4",
        headers=Headers({"content-type": content_type}),
    )


@pytest.fixture
def video(session, user):
    return VideoRepository(session).create(title="Boots", owner_id=user.id)


def _service(session, toolkit, s3_factories, tmp_dir):
    return VideoUploadService(
        repo=VideoRepository(session),
        toolkit=toolkit,
        s3=s3_factories,
        tmp_dir=str(tmp_dir),
    )


def test_upload_reaches_persisted(session, video, fake_toolkit, fake_s3, s3_factories, upload_tmp):
    svc = _service(session, fake_toolkit, s3_factories, upload_tmp)

    updated = svc.upload(video, _upload_file())

    assert svc.state == UploadState.PERSISTED
    assert svc.failed_from is None

    [stored] = fake_s3.uploads
    assert stored["bucket"] == "tubely"
    assert stored["key"].startswith("landscape/")
    assert stored["key"].endswith(".mp4")
    assert stored["content_type"] == "video/mp4"
    # c'est la sortie fast start qui part sur S3
    assert stored["body"] == fake_toolkit.output

    ref = StoredObjectRef.parse(updated.video_url)
    assert ref == StoredObjectRef(bucket="tubely", key=stored["key"])

    # classification sur l'original, pas sur la sortie .processing
    assert fake_toolkit.probed == fake_toolkit.remuxed
    assert not fake_toolkit.probed[0].endswith(".processing")

    assert os.listdir(upload_tmp) == []


@pytest.mark.parametrize(
    "width, height, prefix",
    [(1080, 1920, "portrait/"), (1000, 1000, "other/")],
)
def test_upload_key_prefix_follows_aspect_bucket(session, video, fake_s3, s3_factories, upload_tmp, width, height, prefix):
    svc = _service(session, FakeToolkit(width=width, height=height), s3_factories, upload_tmp)

    svc.upload(video, _upload_file())

    assert fake_s3.uploads[0]["key"].startswith(prefix)


def test_wrong_content_type_is_rejected_before_staging(session, video, fake_toolkit, fake_s3, s3_factories, upload_tmp):
    svc = _service(session, fake_toolkit, s3_factories, upload_tmp)

    with pytest.raises(HTTPException) as exc:
        svc.upload(video, _upload_file(content_type="video/webm"))

    assert exc.value.status_code == 400
    assert svc.state == UploadState.FAILED
    assert svc.failed_from == UploadState.RECEIVING
    assert fake_toolkit.remuxed == []
    assert fake_s3.uploads == []
    assert os.listdir(upload_tmp) == []
    assert video.video_url is None


def test_content_type_parameters_are_ignored(session, video, fake_toolkit, fake_s3, s3_factories, upload_tmp):
    svc = _service(session, fake_toolkit, s3_factories, upload_tmp)

    svc.upload(video, _upload_file(content_type='video/mp4; codecs="avc1"'))

    assert svc.state == UploadState.PERSISTED


def test_oversized_upload_is_rejected(session, video, fake_toolkit, s3_factories, upload_tmp, monkeypatch):
    svc = _service(session, fake_toolkit, s3_factories, upload_tmp)
    monkeypatch.setattr(svc.settings, "MAX_VIDEO_UPLOAD_BYTES", 16)

    with pytest.raises(HTTPException) as exc:
        svc.upload(video, _upload_file())

    assert exc.value.status_code == 413
    assert svc.failed_from == UploadState.RECEIVING
    assert os.listdir(upload_tmp) == []


def test_empty_transcode_output_fails_and_cleans_up(session, video, fake_s3, s3_factories, upload_tmp):
    toolkit = FakeToolkit(output=b"")
    svc = _service(session, toolkit, s3_factories, upload_tmp)

    with pytest.raises(HTTPException) as exc:
        svc.upload(video, _upload_file())

    assert exc.value.status_code == 500
    assert "processed file is empty" in exc.value.detail
    assert isinstance(exc.value.__cause__, MediaTranscodeError)
    assert svc.failed_from == UploadState.TRANSCODING
    assert fake_s3.uploads == []
    assert os.listdir(upload_tmp) == []


def test_probe_failure_fails_and_cleans_up(session, video, fake_toolkit, fake_s3, s3_factories, upload_tmp):
    fake_toolkit.probe_error = MediaProbeError("no video streams found", path="x")
    svc = _service(session, fake_toolkit, s3_factories, upload_tmp)

    with pytest.raises(HTTPException) as exc:
        svc.upload(video, _upload_file())

    assert exc.value.status_code == 500
    assert exc.value.__cause__ is fake_toolkit.probe_error
    assert svc.failed_from == UploadState.CLASSIFYING
    assert fake_s3.uploads == []
    assert os.listdir(upload_tmp) == []


def test_object_store_failure_fails_and_cleans_up(session, video, fake_toolkit, fake_s3, s3_factories, upload_tmp):
    fake_s3.fail_uploads = ClientError({"Error": {"Code": "SlowDown", "Message": "slow down"}}, "PutObject")
    svc = _service(session, fake_toolkit, s3_factories, upload_tmp)

    with pytest.raises(HTTPException) as exc:
        svc.upload(video, _upload_file())

    assert exc.value.status_code == 502
    assert isinstance(exc.value.__cause__, StorageUploadError)
    assert svc.failed_from == UploadState.UPLOADING
    assert video.video_url is None
    assert os.listdir(upload_tmp) == []


def test_metadata_failure_leaves_uploaded_object(session, video, fake_toolkit, fake_s3, s3_factories, upload_tmp, monkeypatch):
    svc = _service(session, fake_toolkit, s3_factories, upload_tmp)

    def broken_update(entity, **changes):
        raise OperationalError("UPDATE video", {}, Exception("database is locked"))

    monkeypatch.setattr(svc.repo, "update", broken_update)

    with pytest.raises(HTTPException) as exc:
        svc.upload(video, _upload_file())

    assert exc.value.status_code == 500
    assert isinstance(exc.value.__cause__, OperationalError)
    assert svc.failed_from == UploadState.UPLOADING
    # pas de rollback côté object store
    assert len(fake_s3.uploads) == 1
    assert os.listdir(upload_tmp) == []
