from dataclasses import dataclass
from typing import Callable, Optional

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from tubely.core.config import settings
from tubely.core.exceptions import PresignError, StorageUploadError


def make_s3_client(endpoint_url: Optional[str]):
    cfg = BotoConfig(
        signature_version="s3v4",
        s3={"addressing_style": "path" if endpoint_url else "auto"},
    )
    return boto3.client(
        "s3",
        endpoint_url=endpoint_url,
        region_name=settings.S3_REGION,
        aws_access_key_id=settings.S3_KEY,
        aws_secret_access_key=settings.S3_SECRET,
        config=cfg,
        use_ssl=endpoint_url.startswith("https") if endpoint_url else True,
    )

def make_s3_internal():
    return make_s3_client(settings.S3_ENDPOINT)

def make_s3_public():
    return make_s3_client(settings.S3_PUBLIC_ENDPOINT)


@dataclass(frozen=True)
class S3Factories:
    """
    Fabriques de clients S3 injectées dans les services.
    internal : uploads / suppressions, public : URLs signées.
    """
    internal: Callable[[], object] = make_s3_internal
    public: Callable[[], object] = make_s3_public


@dataclass(frozen=True)
class StoredObjectRef:
    """
    Référence persistée d'un objet : "<bucket>,<key>".
    Seul endroit qui connaît ce format.
    """
    bucket: str
    key: str

    SEPARATOR = ","

    def to_field(self) -> str:
        return f"{self.bucket}{self.SEPARATOR}{self.key}"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["StoredObjectRef"]:
        if not value or cls.SEPARATOR not in value:
            return None
        bucket, key = value.split(cls.SEPARATOR, 1)
        if not bucket or not key:
            return None
        return cls(bucket=bucket, key=key)


def presign_get_url(s3, *, bucket: str, key: str, ttl: int) -> str:
    try:
        return s3.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": bucket, "Key": key},
            ExpiresIn=ttl,
        )
    except (BotoCoreError, ClientError) as e:
        raise PresignError(bucket, key, e) from e


def sign_stored_url(s3, value: Optional[str], *, ttl: int) -> Optional[str]:
    """
    "bucket,key" -> URL GET signée.
    Une valeur absente ou qui n'est pas une paire est renvoyée telle quelle.
    """
    ref = StoredObjectRef.parse(value)
    if ref is None:
        return value
    return presign_get_url(s3, bucket=ref.bucket, key=ref.key, ttl=ttl)


def upload_file(s3, path: str, *, bucket: str, key: str, content_type: str) -> None:
    """Envoie un fichier local en streaming (multipart géré par boto3)."""
    try:
        with open(path, "rb") as body:
            s3.upload_fileobj(
                Fileobj=body,
                Bucket=bucket,
                Key=key,
                ExtraArgs={"ContentType": content_type},
            )
    except (BotoCoreError, ClientError, S3UploadFailedError, OSError) as e:
        raise StorageUploadError(key, e) from e


def upload_bytes(s3, data: bytes, *, bucket: str, key: str, content_type: str) -> None:
    try:
        s3.put_object(Bucket=bucket, Key=key, Body=data, ContentType=content_type)
    except (BotoCoreError, ClientError) as e:
        raise StorageUploadError(key, e) from e
