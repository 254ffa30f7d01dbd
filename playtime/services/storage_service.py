import logging
import os
import time
from typing import Optional
from urllib.parse import urlparse

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from playtime.config import get_settings
from playtime.errors import ConfigurationError, TransportError
from playtime.models.wechat import UploadResult

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB


def _extension_for(filename: str, content_type: str) -> str:
    ext = os.path.splitext(filename or "")[1]
    if ext:
        return ext
    if content_type.startswith("image/jpeg"):
        return ".jpg"
    if content_type.startswith("image/png"):
        return ".png"
    return ".bin"


class StorageService:
    """Uploads files to the COS bucket through its S3-compatible API.

    ``COS_BUCKET_URL`` looks like ``https://<bucket>.cos.<region>.myqcloud.com``;
    the bucket is the first host label and the rest is the service endpoint.
    """

    def __init__(self, client=None):
        settings = get_settings()
        if not (settings.cos_secret_id and settings.cos_secret_key and settings.cos_bucket_url):
            raise ConfigurationError("missing COS configuration")

        self.host = urlparse(settings.cos_bucket_url).netloc
        if "." not in self.host:
            raise ConfigurationError(f"invalid COS bucket URL: {settings.cos_bucket_url}")
        self.bucket_name, endpoint_host = self.host.split(".", 1)

        self.s3_client = client or boto3.client(
            "s3",
            endpoint_url=f"https://{endpoint_host}",
            aws_access_key_id=settings.cos_secret_id,
            aws_secret_access_key=settings.cos_secret_key,
            region_name=settings.cos_region,
            config=Config(s3={"addressing_style": "virtual"}),
        )

    def upload_file(self, file_content: bytes, filename: str, content_type: str) -> UploadResult:
        """Upload and return the public URL of the stored object."""
        key = f"avatar/{time.time_ns()}{_extension_for(filename, content_type)}"
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=file_content,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("COS upload error: %s", e)
            raise TransportError(f"failed to upload file to COS: {e}") from e

        logger.info("Uploaded %s (%d bytes) as %s", filename, len(file_content), key)
        return UploadResult(url=f"https://{self.host}/{key}", filename=key)


_storage_service_instance: Optional[StorageService] = None


def get_storage_service() -> StorageService:
    global _storage_service_instance
    if _storage_service_instance is None:
        _storage_service_instance = StorageService()
    return _storage_service_instance
