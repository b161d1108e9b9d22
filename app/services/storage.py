"""Object storage gateway: pre-signed upload/download URLs against an S3 bucket.

Works with AWS S3 and S3-compatible services (Cloudflare R2, MinIO). The
application never proxies file bytes; clients PUT and GET directly against
the bucket with the URLs issued here.
"""
import logging
import re
import time
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.config import settings
from app.exceptions import InvalidInput, NotFound, UpstreamFailure

logger = logging.getLogger(__name__)

MB = 1024 * 1024
GB = 1024 * MB


class UploadType(str, Enum):
    VIDEO = "video"
    THUMBNAIL = "thumbnail"
    PREVIEW = "preview"


@dataclass(frozen=True)
class UploadPolicy:
    key_prefix: str
    allowed_types: tuple[str, ...]
    max_size: int


VIDEO_MIME_TYPES = ("video/mp4", "video/webm", "video/quicktime")
IMAGE_MIME_TYPES = ("image/jpeg", "image/png", "image/webp")

UPLOAD_POLICIES: dict[UploadType, UploadPolicy] = {
    UploadType.VIDEO: UploadPolicy("videos", VIDEO_MIME_TYPES, 5 * GB),
    UploadType.PREVIEW: UploadPolicy("previews", VIDEO_MIME_TYPES, 500 * MB),
    UploadType.THUMBNAIL: UploadPolicy("thumbnails", IMAGE_MIME_TYPES, 10 * MB),
}

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


@dataclass(frozen=True)
class SignedUpload:
    upload_url: str
    key: str
    public_url: str


def sanitize_file_name(file_name: str) -> str:
    return _UNSAFE_FILENAME_CHARS.sub("_", file_name)


def build_storage_key(upload_type: UploadType, user_id: str, file_name: str,
                      timestamp_ms: Optional[int] = None) -> str:
    """``{prefix}/{user_id}/{epoch_ms}-{sanitized name}``.

    The user segment scopes every object to its uploader; the timestamp keeps
    re-uploads of the same file name from colliding.
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    prefix = UPLOAD_POLICIES[upload_type].key_prefix
    return f"{prefix}/{user_id}/{timestamp_ms}-{sanitize_file_name(file_name)}"


def validate_upload(upload_type: UploadType, file_type: str, file_size: int) -> UploadPolicy:
    """Check client-declared type and size against the policy for ``upload_type``."""
    policy = UPLOAD_POLICIES[upload_type]
    if file_type not in policy.allowed_types:
        raise InvalidInput(
            f"Invalid file type. Allowed types: {', '.join(policy.allowed_types)}"
        )
    if file_size > policy.max_size:
        raise InvalidInput(
            f"File too large. Maximum size: {round(policy.max_size / MB)}MB"
        )
    return policy


class StorageGateway:
    """Thin wrapper around a boto3 S3 client for one bucket."""

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        endpoint_url: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        public_base_url: Optional[str] = None,
    ):
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None

        # R2 / MinIO need path-style addressing behind a custom endpoint
        addressing_style = "path" if endpoint_url else "virtual"
        self.client = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=access_key_id or None,
            aws_secret_access_key=secret_access_key or None,
            config=Config(signature_version="s3v4", s3={"addressing_style": addressing_style}),
        )

    def sign_upload(self, key: str, content_type: str, content_length: int, expires_in: int) -> str:
        """Pre-signed PUT URL. Content type and length are bound into the signature."""
        try:
            return self.client.generate_presigned_url(
                ClientMethod="put_object",
                Params={
                    "Bucket": self.bucket,
                    "Key": key,
                    "ContentType": content_type,
                    "ContentLength": content_length,
                },
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError):
            logger.exception(f"Failed to sign upload URL for key {key}")
            raise UpstreamFailure("Failed to generate upload URL")

    def sign_download(self, key: str, expires_in: int) -> str:
        """Pre-signed GET URL for ``key``."""
        try:
            return self.client.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError):
            logger.exception(f"Failed to sign download URL for key {key}")
            raise UpstreamFailure("Failed to get video URL")

    def public_url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def head(self, key: str) -> tuple[int, Optional[str]]:
        """Return ``(size_in_bytes, content_type)`` of a stored object."""
        try:
            response = self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code")
            if error_code in ("404", "NoSuchKey", "NotFound"):
                raise NotFound(f"Object not found: {key}")
            logger.exception(f"Failed to inspect object {key}")
            raise UpstreamFailure("Storage service unavailable")
        except BotoCoreError:
            logger.exception(f"Failed to inspect object {key}")
            raise UpstreamFailure("Storage service unavailable")
        return response["ContentLength"], response.get("ContentType")

    def delete(self, key: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError):
            logger.exception(f"Failed to delete object {key}")
            raise UpstreamFailure("Storage service unavailable")

    def create_upload(
        self,
        user_id: str,
        file_name: str,
        file_type: str,
        file_size: int,
        upload_type: UploadType,
        expires_in: Optional[int] = None,
    ) -> SignedUpload:
        """Validate declared file metadata and issue a direct-upload URL.

        Validation is on client-declared metadata; the signed content length
        and type make the bucket refuse a PUT that does not match them.
        """
        validate_upload(upload_type, file_type, file_size)
        key = build_storage_key(upload_type, user_id, file_name)
        upload_url = self.sign_upload(
            key,
            content_type=file_type,
            content_length=file_size,
            expires_in=expires_in or settings.UPLOAD_URL_EXPIRE_SECONDS,
        )
        logger.info(f"Issued {upload_type.value} upload URL for user {user_id}: {key}")
        return SignedUpload(upload_url=upload_url, key=key, public_url=self.public_url(key))


@lru_cache()
def get_storage_gateway() -> StorageGateway:
    """Process-wide storage gateway; overridden with a fake in tests."""
    return StorageGateway(
        bucket=settings.S3_BUCKET_NAME,
        region=settings.S3_REGION,
        endpoint_url=settings.S3_ENDPOINT,
        access_key_id=settings.S3_ACCESS_KEY_ID,
        secret_access_key=settings.S3_SECRET_ACCESS_KEY,
        public_base_url=settings.STORAGE_PUBLIC_URL,
    )
