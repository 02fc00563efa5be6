"""Shared fixtures for files app tests."""

import base64
from io import BytesIO

import boto3
import pytest
from django.contrib.auth import get_user_model
from django.core.files.storage import InMemoryStorage
from moto import mock_aws
from PIL import Image

from server.apps.files.infrastructure.job_queue import DatabaseJobQueue
from server.apps.files.infrastructure.storage import ByteStore
from server.apps.files.logic.file_operations import FileService
from server.apps.files.logic.metadata_store import MetadataStore
from server.apps.tokens.logic.token_store import (
    TokenCredentialStore,
    issue_token,
)

User = get_user_model()


@pytest.fixture
def user(db):
    """Create test user.

    Returns:
        User instance for testing.
    """
    return User.objects.create_user(
        username='testuser',
        password='testpass123',
        email='test@example.com',
    )


@pytest.fixture
def other_user(db):
    """Create second test user for isolation tests.

    Returns:
        Second user instance.
    """
    return User.objects.create_user(
        username='otheruser',
        password='testpass123',
        email='other@example.com',
    )


@pytest.fixture
def token(user):
    """Issue auth token for test user.

    Returns:
        Token key.
    """
    return issue_token(user).key


@pytest.fixture
def other_token(other_user):
    """Issue auth token for second user.

    Returns:
        Token key.
    """
    return issue_token(other_user).key


@pytest.fixture
def mock_s3():
    """Mock S3 service with files-manager bucket.

    Yields:
        boto3 S3 resource with files-manager bucket created.
    """
    with mock_aws():
        conn = boto3.resource('s3', region_name='us-east-1')
        conn.create_bucket(Bucket='files-manager')

        yield conn


@pytest.fixture
def memory_storage():
    """In-memory storage backend.

    Returns:
        Empty InMemoryStorage instance.
    """
    return InMemoryStorage()


@pytest.fixture
def byte_store(memory_storage):
    """Byte store over in-memory storage.

    Returns:
        ByteStore instance.
    """
    return ByteStore(memory_storage)


@pytest.fixture
def metadata_store():
    """Metadata store over the test database.

    Returns:
        MetadataStore instance.
    """
    return MetadataStore()


@pytest.fixture
def job_queue():
    """Database job queue.

    Returns:
        DatabaseJobQueue instance.
    """
    return DatabaseJobQueue()


@pytest.fixture
def service(metadata_store, byte_store, job_queue):
    """FileService with in-memory content storage.

    Returns:
        FileService instance.
    """
    return FileService(
        credentials=TokenCredentialStore(),
        metadata=metadata_store,
        byte_store=byte_store,
        job_queue=job_queue,
    )


@pytest.fixture
def default_memory_storage(settings):
    """Switch the default storage backend to in-memory storage.

    Used by tests going through views and management commands, which
    build their collaborators from settings.
    """
    settings.STORAGES = {
        **settings.STORAGES,
        'default': {
            'BACKEND': 'django.core.files.storage.InMemoryStorage',
        },
    }


def fake_resizer(data: bytes, size: int) -> bytes:
    """Deterministic stand-in for image resizing."""
    return data + f'@{size}'.encode()


@pytest.fixture
def resizer():
    """Fake resizer that tags content with the width.

    Returns:
        Resizer callable.
    """
    return fake_resizer


@pytest.fixture
def png_bytes():
    """Small PNG image, 40x20 pixels.

    Returns:
        Encoded PNG.
    """
    output = BytesIO()
    Image.new('RGB', (40, 20), color=(200, 30, 30)).save(output, format='PNG')
    return output.getvalue()


@pytest.fixture
def png_payload(png_bytes):
    """Base64 encoded PNG as sent by clients.

    Returns:
        Base64 string.
    """
    return base64.b64encode(png_bytes).decode()


@pytest.fixture
def text_payload():
    """Base64 encoded text file as sent by clients.

    Returns:
        Base64 string of b'Hello Webstack!'.
    """
    return base64.b64encode(b'Hello Webstack!').decode()
