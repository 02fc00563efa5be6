"""Naming and content helpers for stored files."""

import base64
import binascii
import mimetypes
import uuid
from typing import Final

# Served when the name gives no hint about the content
_FALLBACK_CONTENT_TYPE: Final = 'text/plain; charset=utf-8'


def detect_mime_type(filename: str) -> str:
    """Detect MIME type from a file name.

    Args:
        filename: Filename with extension.

    Returns:
        MIME type string (e.g., 'image/png'), or a plain text type if
        it cannot be determined.
    """
    mime_type, _ = mimetypes.guess_type(filename)
    if mime_type is None:
        return _FALLBACK_CONTENT_TYPE
    return mime_type


def decode_payload(data: str) -> bytes:
    """Decode base64 upload payload.

    Args:
        data: Base64 encoded content.

    Returns:
        Raw bytes.

    Raises:
        ValueError: If data is not valid base64.
    """
    try:
        return base64.b64decode(data, validate=True)
    except binascii.Error as error:
        raise ValueError('Payload is not valid base64') from error


def generate_storage_name(prefix: str) -> str:
    """Generate a unique byte store name for new content.

    Args:
        prefix: Storage prefix (e.g., 'files_manager').

    Returns:
        Name like 'files_manager/3f2b...'.
    """
    return '{prefix}/{uid}'.format(
        prefix=prefix.strip('/'),
        uid=uuid.uuid4(),
    )


def derivative_name(storage_ref: str, size: int) -> str:
    """Byte store name of a thumbnail.

    Deterministic, so regenerating a thumbnail overwrites the old copy.

    Args:
        storage_ref: Byte store name of the original image.
        size: Thumbnail width.

    Returns:
        Name like 'files_manager/3f2b..._100'.
    """
    return f'{storage_ref}_{size}'
