"""Unit tests for the boto3-backed object store."""

from __future__ import annotations

import io
from unittest.mock import ANY, MagicMock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError, ReadTimeoutError

from objectfs.core.config import Settings
from objectfs.services import (
    BackendRejectedError,
    BackendUnavailableError,
    NamespaceTranslator,
    ResourceNotFoundError,
    S3ObjectStore,
    ensure_bucket,
    get_s3_client,
)


def _client_error(code: str, status: int, operation: str = "GetObject") -> ClientError:
    return ClientError(
        {
            "Error": {"Code": code, "Message": f"{code} message"},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


def test_get_s3_client_uses_settings() -> None:
    settings = Settings(
        s3_endpoint_url="http://minio.local:9000",
        s3_region="eu-central-1",
        s3_access_key="access",
        s3_secret_key="secret",
    )

    with patch("objectfs.services.s3.boto3.client") as client_factory:
        get_s3_client(settings)

    client_factory.assert_called_once_with(
        "s3",
        endpoint_url="http://minio.local:9000",
        region_name="eu-central-1",
        aws_access_key_id="access",
        aws_secret_access_key="secret",
        config=ANY,
    )
    config = client_factory.call_args.kwargs["config"]
    assert config.retries == {"max_attempts": settings.s3_max_attempts, "mode": "standard"}
    assert config.connect_timeout == settings.s3_connect_timeout_seconds


def test_list_prefix_passes_pagination_parameters() -> None:
    client = MagicMock()
    client.list_objects_v2.return_value = {
        "CommonPrefixes": [{"Prefix": "p/sub/"}],
        "Contents": [{"Key": "p/a.txt"}],
        "IsTruncated": True,
        "NextContinuationToken": "next-token",
    }
    store = S3ObjectStore(client, "bucket")

    listing = store.list_prefix("p/", delimiter="/", cursor="token", page_size=20)

    client.list_objects_v2.assert_called_once_with(
        Bucket="bucket",
        Prefix="p/",
        MaxKeys=20,
        Delimiter="/",
        ContinuationToken="token",
    )
    assert listing.common_prefixes == ("p/sub/",)
    assert listing.keys == ("p/a.txt",)
    assert listing.next_cursor == "next-token"


def test_list_prefix_omits_cursor_on_first_page() -> None:
    client = MagicMock()
    client.list_objects_v2.return_value = {"IsTruncated": False}
    store = S3ObjectStore(client, "bucket")

    listing = store.list_prefix("", delimiter="/", cursor=None, page_size=20)

    assert "ContinuationToken" not in client.list_objects_v2.call_args.kwargs
    assert listing.is_empty
    assert listing.next_cursor is None


def test_list_prefix_maps_service_errors_to_rejected() -> None:
    client = MagicMock()
    client.list_objects_v2.side_effect = _client_error("AccessDenied", 403, "ListObjectsV2")
    store = S3ObjectStore(client, "bucket")

    with pytest.raises(BackendRejectedError) as exc_info:
        store.list_prefix("p/", delimiter="/", cursor=None, page_size=20)

    assert exc_info.value.backend_code == "AccessDenied"
    assert exc_info.value.status_code == 403
    assert isinstance(exc_info.value.__cause__, ClientError)


def test_list_prefix_maps_connection_errors_to_unavailable() -> None:
    client = MagicMock()
    client.list_objects_v2.side_effect = EndpointConnectionError(endpoint_url="http://minio:9000")
    store = S3ObjectStore(client, "bucket")

    with pytest.raises(BackendUnavailableError) as exc_info:
        store.list_prefix("p/", delimiter="/", cursor=None, page_size=20)

    assert exc_info.value.status_code == 500


def test_head_object_reports_missing_key() -> None:
    client = MagicMock()
    client.head_object.side_effect = _client_error("404", 404, "HeadObject")

    assert S3ObjectStore(client, "bucket").head_object("missing.txt") is False
    client.head_bucket.assert_called_once_with(Bucket="bucket")


def test_get_object_trusts_error_code_over_status() -> None:
    client = MagicMock()
    client.get_object.side_effect = _client_error("NoSuchBucket", 404)

    with pytest.raises(BackendRejectedError) as exc_info:
        S3ObjectStore(client, "gone-bucket").get_object("a.txt", io.BytesIO())

    assert exc_info.value.backend_code == "NoSuchBucket"
    assert exc_info.value.status_code == 500


@pytest.fixture
def missing_bucket_store(s3_client) -> S3ObjectStore:
    return S3ObjectStore(s3_client, "no-such-bucket")


def test_get_object_from_missing_bucket_is_rejected(missing_bucket_store) -> None:
    with pytest.raises(BackendRejectedError) as exc_info:
        missing_bucket_store.get_object("a.txt", io.BytesIO())

    assert exc_info.value.backend_code == "NoSuchBucket"
    assert exc_info.value.status_code == 500


def test_head_object_in_missing_bucket_is_rejected(missing_bucket_store) -> None:
    with pytest.raises(BackendRejectedError) as exc_info:
        missing_bucket_store.head_object("a.txt")

    assert exc_info.value.status_code == 500


def test_list_prefix_of_missing_bucket_is_rejected(missing_bucket_store) -> None:
    with pytest.raises(BackendRejectedError) as exc_info:
        missing_bucket_store.list_prefix("", delimiter="/", cursor=None, page_size=20)

    assert exc_info.value.status_code == 500


def test_missing_bucket_is_not_reported_as_missing_file(missing_bucket_store) -> None:
    translator = NamespaceTranslator(missing_bucket_store)

    with pytest.raises(BackendRejectedError):
        translator.get_resource("docs/a.txt")


def test_head_object_raises_on_other_service_errors() -> None:
    client = MagicMock()
    client.head_object.side_effect = _client_error("Forbidden", 403, "HeadObject")

    with pytest.raises(BackendRejectedError):
        S3ObjectStore(client, "bucket").head_object("secret.txt")


def test_get_object_maps_missing_key_to_not_found() -> None:
    client = MagicMock()
    client.get_object.side_effect = _client_error("NoSuchKey", 404)

    with pytest.raises(ResourceNotFoundError) as exc_info:
        S3ObjectStore(client, "bucket").get_object("gone.txt", io.BytesIO())

    assert exc_info.value.key == "gone.txt"


def test_get_object_maps_stream_timeouts_to_unavailable() -> None:
    body = MagicMock()
    body.iter_chunks.side_effect = ReadTimeoutError(endpoint_url="http://minio:9000")
    client = MagicMock()
    client.get_object.return_value = {"Body": body}

    with pytest.raises(BackendUnavailableError):
        S3ObjectStore(client, "bucket").get_object("slow.bin", io.BytesIO())

    body.close.assert_called_once()


def test_rejected_error_without_status_surfaces_as_500() -> None:
    assert BackendRejectedError("boom").status_code == 500


def test_put_and_get_object_against_bucket(s3_store, s3_client) -> None:
    s3_store.put_object("docs/a.txt", io.BytesIO(b"hello"), content_type="text/plain", length=5)

    head = s3_client.head_object(Bucket=s3_store.bucket, Key="docs/a.txt")
    assert head["ContentType"] == "text/plain"
    assert s3_store.head_object("docs/a.txt") is True

    destination = io.BytesIO()
    assert s3_store.get_object("docs/a.txt", destination) == 5
    assert destination.getvalue() == b"hello"


def test_put_object_defaults_content_type(s3_store, s3_client) -> None:
    s3_store.put_object("blob", io.BytesIO(b"xyz"), content_type=None, length=3)

    head = s3_client.head_object(Bucket=s3_store.bucket, Key="blob")
    assert head["ContentType"] == "application/octet-stream"


def test_ensure_bucket_creates_missing_bucket(s3_client) -> None:
    ensure_bucket(s3_client, "fresh-bucket")

    names = [bucket["Name"] for bucket in s3_client.list_buckets()["Buckets"]]
    assert "fresh-bucket" in names


def test_ensure_bucket_skips_existing_bucket() -> None:
    client = MagicMock()

    ensure_bucket(client, "existing")

    client.head_bucket.assert_called_once_with(Bucket="existing")
    client.create_bucket.assert_not_called()


def test_ensure_bucket_refuses_to_create_when_disabled(s3_client) -> None:
    with pytest.raises(BackendRejectedError) as exc_info:
        ensure_bucket(s3_client, "not-there", create=False)

    assert exc_info.value.backend_code == "NoSuchBucket"
    assert exc_info.value.status_code == 500


def test_ensure_bucket_sets_location_outside_us_east_1() -> None:
    client = MagicMock()
    client.meta.region_name = "eu-west-1"
    client.head_bucket.side_effect = _client_error("404", 404, "HeadBucket")

    ensure_bucket(client, "regional")

    client.create_bucket.assert_called_once_with(
        Bucket="regional",
        CreateBucketConfiguration={"LocationConstraint": "eu-west-1"},
    )


def test_ensure_ready_uses_configured_bucket() -> None:
    with patch("objectfs.services.s3.boto3.client") as client_factory:
        client = client_factory.return_value
        store = S3ObjectStore.from_settings(Settings(s3_bucket="configured", s3_create_bucket=False))

    store.ensure_ready()

    assert store.bucket == "configured"
    client.head_bucket.assert_called_once_with(Bucket="configured")
