"""
Per-user S3-compatible object storage.

Users who enable S3 in their profile have their attachments and reports written
to their own bucket; everyone else is stored inline in the database (see blobs.py).
"""
import re
import time
from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError, ConnectTimeoutError, EndpointConnectionError, ReadTimeoutError

from ..core.logging import get_logger
from ..core.retry import is_transient_error, retry_with_backoff

logger = get_logger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def is_transient_s3_error(exc: BaseException) -> bool:
    if isinstance(exc, (EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError)):
        return True
    if isinstance(exc, ClientError):
        code = exc.response.get("Error", {}).get("Code", "")
        return code in ("RequestTimeout", "SlowDown", "ServiceUnavailable", "InternalError")
    return is_transient_error(exc)


def sanitize_file_name(file_name: str) -> str:
    return _UNSAFE_CHARS.sub("_", file_name or "file")


def make_object_key(file_name: str, now_ms: Optional[int] = None) -> str:
    """Key layout: files/<unix millis>-<sanitized name>"""
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"files/{stamp}-{sanitize_file_name(file_name)}"


@dataclass(frozen=True)
class S3Config:
    endpoint: Optional[str]
    region: str
    bucket: str
    access_key: str
    secret_key: str


def s3_config_for_user(user) -> Optional[S3Config]:
    """The user's S3 settings, or None when object storage is off or incomplete."""
    if user is None or not user.s3_enabled:
        return None
    if not (user.s3_bucket and user.s3_access_key and user.s3_secret_key):
        return None
    return S3Config(
        endpoint=user.s3_endpoint or None,
        region=user.s3_region or "us-east-1",
        bucket=user.s3_bucket,
        access_key=user.s3_access_key,
        secret_key=user.s3_secret_key,
    )


class ObjectStorage:
    """Thin boto3 wrapper with retries on connection failures."""

    def __init__(self, config: S3Config):
        self.config = config
        self._client = None

    def _get_client(self):
        """Lazy initialization of the S3 client"""
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=self.config.endpoint,
                aws_access_key_id=self.config.access_key,
                aws_secret_access_key=self.config.secret_key,
                region_name=self.config.region,
                config=Config(
                    signature_version="s3v4",
                    s3={"addressing_style": "path"},
                    retries={"max_attempts": 1},
                ),
            )
        return self._client

    @retry_with_backoff(max_attempts=3, base_delay=0.2, retry_if=is_transient_s3_error)
    def put(self, file_name: str, data: bytes, content_type: str) -> str:
        """Upload bytes and return the object key."""
        key = make_object_key(file_name)
        self._get_client().put_object(Bucket=self.config.bucket, Key=key, Body=data, ContentType=content_type)
        logger.info(f"[S3] Uploaded {key} ({len(data)} bytes) to bucket {self.config.bucket}")
        return key

    @retry_with_backoff(max_attempts=3, base_delay=0.2, retry_if=is_transient_s3_error)
    def get(self, key: str) -> bytes:
        response = self._get_client().get_object(Bucket=self.config.bucket, Key=key)
        return response["Body"].read()

    @retry_with_backoff(max_attempts=3, base_delay=0.2, retry_if=is_transient_s3_error)
    def delete(self, key: str) -> None:
        self._get_client().delete_object(Bucket=self.config.bucket, Key=key)
        logger.info(f"[S3] Deleted {key} from bucket {self.config.bucket}")


def object_storage_for_user(user) -> Optional[ObjectStorage]:
    """Default factory kept on app.state.object_storage_factory."""
    config = s3_config_for_user(user)
    if config is None:
        return None
    return ObjectStorage(config)
