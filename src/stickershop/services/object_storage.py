import logging
from abc import ABC, abstractmethod
from typing import Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from stickershop.core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class ObjectStorage(ABC):
    """Object storage port used for artwork uploads"""

    @abstractmethod
    def put_object(self, key: str, body: bytes, content_type: str) -> str:
        """Store body under key and return its URL"""
        pass


class S3ObjectStorage(ObjectStorage):
    def __init__(self, bucket: str, region: str, timeout_seconds: float = 60.0):
        self.bucket = bucket
        self.region = region
        self.timeout_seconds = timeout_seconds
        self._client = None

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=self.region,
                config=BotoConfig(
                    connect_timeout=self.timeout_seconds,
                    read_timeout=self.timeout_seconds,
                    retries={"max_attempts": 2},
                ),
            )
        return self._client

    def url_for(self, key: str) -> str:
        return f"s3://{self.bucket}/{key}"

    def put_object(self, key: str, body: bytes, content_type: Optional[str]) -> str:
        if not self.bucket:
            raise ExternalServiceError("s3", "File storage not configured")

        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ContentType=content_type or "application/octet-stream",
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to upload {key} to S3: {e}")
            raise ExternalServiceError(
                "s3",
                "Failed to upload file",
                internal_message=str(e),
            )

        logger.info(f"S3 upload successful: {key}")
        return self.url_for(key)
