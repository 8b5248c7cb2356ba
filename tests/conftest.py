# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Test fixtures for s3dump tests.

Provides sample directory trees, test configuration, and in-memory fakes
for the S3 and secret store clients.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator, List, Tuple

import pytest
from botocore.exceptions import ClientError

from s3dump.config import DumpConfig


def _client_error(operation: str, code: str = "InternalError", message: str = "boom") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class FakeS3Client:
    """
    In-memory S3 client with the calls the uploader and presigner use.

    Operations listed in fail_on raise a ClientError.
    """

    def __init__(self) -> None:
        self.objects: Dict[str, Dict[str, Any]] = {}
        self.uploads: Dict[str, Dict[str, Any]] = {}
        self.aborted: List[str] = []
        self.calls: List[str] = []
        self.fail_on: set = set()

    def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.fail_on:
            raise _client_error(operation)

    async def put_object(self, Bucket, Key, Body, ContentType=None, ContentEncoding=None):
        self._enter("put_object")
        self.objects[Key] = {
            "bucket": Bucket,
            "body": bytes(Body),
            "content_type": ContentType,
            "content_encoding": ContentEncoding,
        }
        return {"ETag": '"single"'}

    async def create_multipart_upload(self, Bucket, Key, ContentType=None, ContentEncoding=None):
        self._enter("create_multipart_upload")
        upload_id = f"upload-{len(self.uploads) + 1}"
        self.uploads[upload_id] = {
            "bucket": Bucket,
            "key": Key,
            "parts": {},
            "content_type": ContentType,
            "content_encoding": ContentEncoding,
        }
        return {"UploadId": upload_id}

    async def upload_part(self, Bucket, Key, UploadId, PartNumber, Body):
        self._enter("upload_part")
        self.uploads[UploadId]["parts"][PartNumber] = bytes(Body)
        return {"ETag": f'"part-{PartNumber}"'}

    async def complete_multipart_upload(self, Bucket, Key, UploadId, MultipartUpload):
        self._enter("complete_multipart_upload")
        upload = self.uploads.pop(UploadId)
        numbers = [p["PartNumber"] for p in MultipartUpload["Parts"]]
        self.objects[Key] = {
            "bucket": Bucket,
            "body": b"".join(upload["parts"][n] for n in numbers),
            "content_type": upload["content_type"],
            "content_encoding": upload["content_encoding"],
            "part_sizes": [len(upload["parts"][n]) for n in numbers],
        }
        return {"ETag": '"multi"', "VersionId": "v1"}

    async def abort_multipart_upload(self, Bucket, Key, UploadId):
        self._enter("abort_multipart_upload")
        self.uploads.pop(UploadId, None)
        self.aborted.append(UploadId)
        return {}

    async def generate_presigned_url(self, ClientMethod, Params=None, ExpiresIn=3600):
        self._enter("generate_presigned_url")
        return f"https://storage.test/{Params['Bucket']}/{Params['Key']}?X-Amz-Expires={ExpiresIn}"


class FakeSecretsClient:
    """Secret store client returning a fixed payload or failing."""

    def __init__(self, payload: Dict[str, str], fail: bool = False) -> None:
        self.payload = payload
        self.fail = fail

    async def get_secret_value(self, SecretId):
        if self.fail:
            raise _client_error("GetSecretValue", "ResourceNotFoundException", "no such secret")
        return {"SecretString": json.dumps(self.payload), "VersionId": "version-1"}


class _ClientContext:
    def __init__(self, client: Any) -> None:
        self._client = client

    async def __aenter__(self) -> Any:
        return self._client

    async def __aexit__(self, *exc_info) -> None:
        return None


class FakeSession:
    """Session handing out the fake clients and recording what was built."""

    def __init__(self, s3_client: FakeS3Client, secrets_client: FakeSecretsClient) -> None:
        self.s3_client = s3_client
        self.secrets_client = secrets_client
        self.created: List[Tuple[str, Dict[str, Any]]] = []

    def create_client(self, service_name: str, **kwargs: Any) -> _ClientContext:
        self.created.append((service_name, kwargs))
        if service_name == "s3":
            return _ClientContext(self.s3_client)
        if service_name == "secretsmanager":
            return _ClientContext(self.secrets_client)
        raise ValueError(f"Unexpected service: {service_name}")

    @property
    def services(self) -> List[str]:
        return [name for name, _ in self.created]


def session_factory_for(session: Any):
    """Build a session factory handing out session."""

    async def factory():
        return session

    return factory


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_tree(temp_dir: Path) -> Path:
    """
    Build the reference tree:

        a.txt        10 bytes, world-readable
        sys/x/file   must never be archived
        link -> a.txt
    """
    root = temp_dir / "root"
    root.mkdir()

    (root / "a.txt").write_bytes(b"0123456789")
    os.chmod(root / "a.txt", 0o644)

    (root / "sys" / "x").mkdir(parents=True)
    (root / "sys" / "x" / "file").write_bytes(b"kernel state")

    os.symlink("a.txt", root / "link")
    return root


@pytest.fixture
def test_config(sample_tree: Path) -> DumpConfig:
    """Create a test configuration pointing at the sample tree."""
    return DumpConfig(
        bucket="test-bucket",
        region="us-east-1",
        secret_id="dump-credentials",
        root_path=sample_tree,
    )


@pytest.fixture
def fake_s3() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def fake_secrets() -> FakeSecretsClient:
    return FakeSecretsClient({"AWS_ACCESS_KEY": "AKIDTEST", "AWS_SECRET_KEY": "s3cr3t"})


@pytest.fixture
def fake_session(fake_s3: FakeS3Client, fake_secrets: FakeSecretsClient) -> FakeSession:
    return FakeSession(fake_s3, fake_secrets)
