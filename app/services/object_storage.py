"""S3 object storage for uploaded content and transcripts."""

from urllib.parse import unquote, urlparse

import boto3
from botocore.exceptions import ClientError

from app.core.logging import get_logger

logger = get_logger(__name__)


class S3ObjectStorage:
    """Wrapper for the S3 reads the pipeline needs."""

    def __init__(self, bucket: str, region_name: str = "us-east-1", s3_client=None):
        """
        Args:
            bucket: Bucket holding uploaded content
            region_name: AWS region
            s3_client: Optional pre-built boto3 S3 client
        """
        self.bucket = bucket
        self.region_name = region_name
        self.s3_client = s3_client or boto3.client("s3", region_name=region_name)

    def get_bytes(self, key: str) -> bytes:
        """Read an object from the content bucket."""
        return self._read(self.bucket, key)

    def get_bytes_from_uri(self, uri: str) -> bytes:
        """Read an object given an s3:// or https S3 URL."""
        bucket, key = parse_s3_uri(uri, default_bucket=self.bucket)
        return self._read(bucket, key)

    def media_uri(self, key: str) -> str:
        return f"s3://{self.bucket}/{key}"

    def _read(self, bucket: str, key: str) -> bytes:
        try:
            response = self.s3_client.get_object(Bucket=bucket, Key=key)
            return response["Body"].read()
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code == "NoSuchKey":
                logger.error(f"File not found in S3: s3://{bucket}/{key}")
            else:
                logger.error(f"Failed to read s3://{bucket}/{key}: {e}")
            raise


def parse_s3_uri(uri: str, default_bucket: str) -> tuple[str, str]:
    """
    Split an S3 location into (bucket, key).

    Accepts s3://bucket/key, path-style https://s3.<region>.amazonaws.com/bucket/key
    and virtual-hosted https://bucket.s3.<region>.amazonaws.com/key.
    """
    parsed = urlparse(uri)
    path = unquote(parsed.path.lstrip("/"))

    if parsed.scheme == "s3":
        return parsed.netloc, path

    host = parsed.netloc
    if host.startswith("s3.") or host.startswith("s3-") or host == "s3.amazonaws.com":
        bucket, _, key = path.partition("/")
        return bucket, key

    if ".s3." in host or ".s3-" in host:
        return host.split(".s3", 1)[0], path

    return default_bucket, path
