"""Fixtures pytest partagées par les tests du back Tubely."""

import os

# Avant tout import de tubely : base en mémoire, pas de vrai S3
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("S3_ENDPOINT", "http://localhost:9000")
os.environ.setdefault("S3_KEY", "test-access-key")
os.environ.setdefault("S3_SECRET", "test-secret-key")
os.environ.setdefault("S3_BUCKET", "tubely")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from tubely.api.v1.dependencies import get_media_toolkit, get_s3_factories
from tubely.core.config import settings
from tubely.core.exceptions import MediaTranscodeError
from tubely.db.repositories.users import UserRepository
from tubely.db.session import engine
from tubely.main import app
from tubely.security.password import hash_password
from tubely.utils.ffmpeg import PROCESSING_SUFFIX, StreamInfo, TranscodeResult
from tubely.utils.s3 import S3Factories

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
MP4_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 256


class FakeS3:
    """Client S3 minimal : enregistre les appels au lieu de parler au réseau."""

    def __init__(self):
        self.uploads = []
        self.puts = []
        self.deleted = []
        self.fail_uploads = None

    def upload_fileobj(self, Fileobj, Bucket, Key, ExtraArgs=None):
        if self.fail_uploads is not None:
            raise self.fail_uploads
        self.uploads.append({
            "bucket": Bucket,
            "key": Key,
            "body": Fileobj.read(),
            "content_type": (ExtraArgs or {}).get("ContentType"),
        })

    def put_object(self, Bucket, Key, Body, ContentType):
        self.puts.append({"bucket": Bucket, "key": Key, "body": Body, "content_type": ContentType})

    def delete_object(self, Bucket, Key):
        self.deleted.append((Bucket, Key))

    def generate_presigned_url(self, ClientMethod, Params, ExpiresIn):
        return f"https://signed.example/{Params['Bucket']}/{Params['Key']}?X-Amz-Expires={ExpiresIn}"


class FakeToolkit:
    """MediaToolkit en mémoire : le remux écrit `output` dans <path>.processing."""

    def __init__(self, width=1920, height=1080, output=b"faststart-mp4-bytes"):
        self.width = width
        self.height = height
        self.output = output
        self.probed = []
        self.remuxed = []
        self.probe_error = None

    def probe(self, path):
        self.probed.append(path)
        if self.probe_error is not None:
            raise self.probe_error
        return StreamInfo(width=self.width, height=self.height)

    def remux(self, path):
        self.remuxed.append(path)
        out = f"{path}{PROCESSING_SUFFIX}"
        with open(out, "wb") as f:
            f.write(self.output)
        if not self.output:
            raise MediaTranscodeError("processed file is empty", path=path)
        return TranscodeResult(path=out, size=len(self.output))


@pytest.fixture(autouse=True)
def reset_db():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield


@pytest.fixture
def session():
    with Session(engine) as s:
        yield s


@pytest.fixture
def user(session):
    return UserRepository(session).create(username="alice", hashed_password=hash_password("password123"))


@pytest.fixture
def upload_tmp(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    path.mkdir()
    monkeypatch.setattr(settings, "UPLOAD_TMP_DIR", str(path))
    return path


@pytest.fixture
def fake_s3():
    return FakeS3()


@pytest.fixture
def fake_toolkit():
    return FakeToolkit()


@pytest.fixture
def s3_factories(fake_s3):
    return S3Factories(internal=lambda: fake_s3, public=lambda: fake_s3)


@pytest.fixture
def client(s3_factories, fake_toolkit, upload_tmp):
    app.dependency_overrides[get_s3_factories] = lambda: s3_factories
    app.dependency_overrides[get_media_toolkit] = lambda: fake_toolkit
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def sign_up_and_in(client, username="alice", password="password123"):
    r = client.post("/api/v1/auth/sign-up", json={"username": username, "password": password})
    assert r.status_code == 201, r.text
    r = client.post("/api/v1/auth/sign-in", json={"username": username, "password": password})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture
def auth_headers(client):
    return sign_up_and_in(client)
