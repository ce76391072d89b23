"""Shared fixtures: an in-process S3 bucket and the services built on it."""

from __future__ import annotations

import boto3
import pytest
from moto import mock_aws

from objectfs.services import FileService, NamespaceTranslator, S3ObjectStore

TEST_BUCKET = "objectfs-test"


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Keep boto3 away from any real credentials on the machine."""

    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def s3_client():
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket=TEST_BUCKET)
        yield client


@pytest.fixture
def s3_store(s3_client) -> S3ObjectStore:
    return S3ObjectStore(s3_client, TEST_BUCKET)


@pytest.fixture
def translator(s3_store) -> NamespaceTranslator:
    return NamespaceTranslator(s3_store)


@pytest.fixture
def file_service(translator) -> FileService:
    return FileService(translator)


@pytest.fixture
def put_objects(s3_client):
    """Store ``{key: body}`` pairs directly in the test bucket."""

    def _put(objects: dict[str, bytes]) -> None:
        for key, body in objects.items():
            s3_client.put_object(Bucket=TEST_BUCKET, Key=key, Body=body)

    return _put


@pytest.fixture
def isolated_tempdir(tmp_path, monkeypatch):
    """Redirect temporary files so tests can assert on leftovers."""

    directory = tmp_path / "tmp"
    directory.mkdir()
    monkeypatch.setattr("tempfile.tempdir", str(directory))
    return directory
