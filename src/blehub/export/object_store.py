import base64
import hashlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..core.errors import UploadError

logger = logging.getLogger(__name__)


class ObjectStore(Protocol):
    def put_object(self, key: str, data: bytes) -> Optional[str]:
        """Store ``data`` under ``key``; return the store's etag once acknowledged."""
        ...


class S3ObjectStore:
    """S3 (or S3 compatible) bucket. Credentials come from the boto3 default chain."""

    def __init__(self, bucket: str, region: Optional[str] = None,
                 endpoint_url: Optional[str] = None, client=None):
        self.bucket = bucket
        self.client = client or boto3.client("s3", region_name=region, endpoint_url=endpoint_url)

    def put_object(self, key: str, data: bytes) -> Optional[str]:
        md5 = base64.b64encode(hashlib.md5(data).digest()).decode("ascii")
        try:
            resp = self.client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentMD5=md5)
        except (BotoCoreError, ClientError) as e:
            raise UploadError("put_object", e, f"s3://{self.bucket}/{key}") from e
        status = resp.get("ResponseMetadata", {}).get("HTTPStatusCode")
        if status is None or not 200 <= status < 300:
            raise UploadError("put_object", detail=f"s3://{self.bucket}/{key} not acknowledged (status {status})")
        etag = resp.get("ETag")
        logger.info("Stored s3://%s/%s (%d bytes, etag %s)", self.bucket, key, len(data), etag)
        return etag


class FileObjectStore:
    """Directory-backed store. Objects become visible under their key only when complete."""

    def __init__(self, root: str):
        self.root = Path(root)

    def put_object(self, key: str, data: bytes) -> Optional[str]:
        target = self.root / key
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=target.parent, prefix=".upload-")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                os.replace(tmp, target)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise UploadError("put_object", e, str(target)) from e
        logger.info("Stored %s (%d bytes)", target, len(data))
        return hashlib.md5(data).hexdigest()
