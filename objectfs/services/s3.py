"""S3-compatible object store (MinIO, AWS S3) built on boto3."""

from __future__ import annotations

import logging
from typing import Any, BinaryIO

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from objectfs.core.config import Settings, get_settings

from .errors import (
    BackendRejectedError,
    BackendUnavailableError,
    ResourceNotFoundError,
)
from .object_store import ObjectListing, ObjectStore

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})
_NO_SUCH_BUCKET = "NoSuchBucket"
_MISSING_BUCKET_CODES = frozenset({"404", _NO_SUCH_BUCKET, "NotFound"})
_CHUNK_SIZE = 32 * 1024


def get_s3_client(settings: Settings | None = None) -> Any:
    """Create a boto3 S3 client using application settings."""

    config = settings or get_settings()
    return boto3.client(
        "s3",
        endpoint_url=config.s3_endpoint_url or None,
        region_name=config.s3_region,
        aws_access_key_id=config.s3_access_key,
        aws_secret_access_key=config.s3_secret_key,
        config=Config(
            connect_timeout=config.s3_connect_timeout_seconds,
            read_timeout=config.s3_read_timeout_seconds,
            retries={"max_attempts": config.s3_max_attempts, "mode": "standard"},
            s3={"addressing_style": "path"},
        ),
    )


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


def _error_status(exc: ClientError) -> int | None:
    return exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")


def _is_not_found(exc: ClientError, codes: frozenset[str] = _NOT_FOUND_CODES) -> bool:
    code = _error_code(exc)
    # HEAD responses carry no body, so botocore reports only the status as the code.
    if code and code != "404":
        return code in codes
    return _error_status(exc) == 404


def _rejected(exc: ClientError, action: str, target: str) -> BackendRejectedError:
    code = _error_code(exc)
    logger.error("S3 service error %s '%s': %s", action, target, exc)
    return BackendRejectedError(
        f"Error {action} '{target}': {code or 'unknown error'}",
        backend_code=code or None,
        # A missing bucket is a server misconfiguration, never a client 404.
        backend_status=None if code == _NO_SUCH_BUCKET else _error_status(exc),
    )


def _missing_bucket(bucket: str) -> BackendRejectedError:
    logger.error("S3 bucket '%s' does not exist", bucket)
    return BackendRejectedError(f"Bucket '{bucket}' does not exist", backend_code=_NO_SUCH_BUCKET)


def _unavailable(exc: BotoCoreError, action: str, target: str) -> BackendUnavailableError:
    logger.error("S3 client error %s '%s': %s", action, target, exc)
    return BackendUnavailableError(f"Object store unreachable while {action} '{target}'")


def ensure_bucket(client: Any, bucket: str, *, create: bool = True) -> None:
    """Ensure that ``bucket`` exists, creating it when allowed."""

    try:
        client.head_bucket(Bucket=bucket)
        logger.debug("Bucket '%s' already exists", bucket)
        return
    except ClientError as exc:
        if not _is_not_found(exc, _MISSING_BUCKET_CODES):
            raise _rejected(exc, "checking bucket", bucket) from exc
        if not create:
            raise _missing_bucket(bucket) from exc
    except BotoCoreError as exc:
        raise _unavailable(exc, "checking bucket", bucket) from exc

    params: dict[str, Any] = {"Bucket": bucket}
    region = getattr(client.meta, "region_name", None)
    if region and region != "us-east-1":
        params["CreateBucketConfiguration"] = {"LocationConstraint": region}

    try:
        client.create_bucket(**params)
    except ClientError as exc:
        raise _rejected(exc, "creating bucket", bucket) from exc
    except BotoCoreError as exc:
        raise _unavailable(exc, "creating bucket", bucket) from exc
    logger.info("Created bucket '%s'", bucket)


class S3ObjectStore(ObjectStore):
    """Object store bound to a single bucket of an S3-compatible service."""

    name = "s3"

    def __init__(self, client: Any, bucket: str, *, create_bucket: bool = False) -> None:
        self.client = client
        self.bucket = bucket
        self.create_bucket = create_bucket

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "S3ObjectStore":
        config = settings or get_settings()
        return cls(
            get_s3_client(config),
            config.s3_bucket,
            create_bucket=config.s3_create_bucket,
        )

    def list_prefix(
        self,
        prefix: str,
        *,
        delimiter: str | None,
        cursor: str | None,
        page_size: int,
    ) -> ObjectListing:
        params: dict[str, Any] = {
            "Bucket": self.bucket,
            "Prefix": prefix,
            "MaxKeys": page_size,
        }
        if delimiter:
            params["Delimiter"] = delimiter
        if cursor:
            params["ContinuationToken"] = cursor

        try:
            response = self.client.list_objects_v2(**params)
        except ClientError as exc:
            raise _rejected(exc, "listing prefix", prefix) from exc
        except BotoCoreError as exc:
            raise _unavailable(exc, "listing prefix", prefix) from exc

        return ObjectListing(
            common_prefixes=tuple(
                entry["Prefix"] for entry in response.get("CommonPrefixes", [])
            ),
            keys=tuple(obj["Key"] for obj in response.get("Contents", [])),
            next_cursor=response.get("NextContinuationToken") or None,
        )

    def head_object(self, key: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as exc:
            if _is_not_found(exc):
                self._check_bucket()
                return False
            raise _rejected(exc, "retrieving metadata for", key) from exc
        except BotoCoreError as exc:
            raise _unavailable(exc, "retrieving metadata for", key) from exc
        return True

    def _check_bucket(self) -> None:
        """Tell a missing key apart from a missing bucket after a bare 404."""

        try:
            self.client.head_bucket(Bucket=self.bucket)
        except ClientError as exc:
            if _is_not_found(exc, _MISSING_BUCKET_CODES):
                raise _missing_bucket(self.bucket) from exc
            raise _rejected(exc, "checking bucket", self.bucket) from exc
        except BotoCoreError as exc:
            raise _unavailable(exc, "checking bucket", self.bucket) from exc

    def get_object(self, key: str, destination: BinaryIO) -> int:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as exc:
            if _is_not_found(exc):
                logger.warning("Object not found: %s", key)
                raise ResourceNotFoundError(key) from exc
            raise _rejected(exc, "downloading", key) from exc
        except BotoCoreError as exc:
            raise _unavailable(exc, "downloading", key) from exc

        body = response["Body"]
        written = 0
        try:
            for chunk in body.iter_chunks(_CHUNK_SIZE):
                destination.write(chunk)
                written += len(chunk)
        except BotoCoreError as exc:
            raise _unavailable(exc, "downloading", key) from exc
        finally:
            body.close()
        return written

    def put_object(
        self,
        key: str,
        content: BinaryIO,
        *,
        content_type: str | None,
        length: int,
    ) -> None:
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=content,
                ContentLength=length,
                ContentType=content_type or "application/octet-stream",
            )
        except ClientError as exc:
            raise _rejected(exc, "uploading", key) from exc
        except BotoCoreError as exc:
            raise _unavailable(exc, "uploading", key) from exc
        logger.info("Stored %s bytes at %s/%s", length, self.bucket, key)

    def ensure_ready(self) -> None:
        ensure_bucket(self.client, self.bucket, create=self.create_bucket)


__all__ = ["S3ObjectStore", "ensure_bucket", "get_s3_client"]
