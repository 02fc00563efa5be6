"""Image resizing for thumbnails."""

from io import BytesIO
from typing import Final

from PIL import Image, UnidentifiedImageError

from server.apps.files.exceptions import InvalidImageError

# Used when Pillow cannot tell which format the source was in
_FALLBACK_FORMAT: Final = 'PNG'

# Modes JPEG can encode
_JPEG_MODES: Final = frozenset(('RGB', 'L', 'CMYK'))


def resize_image(data: bytes, width: int) -> bytes:
    """Scale an image to the given width, keeping its aspect ratio.

    The thumbnail is encoded in the format of the source image.

    Args:
        data: Encoded source image.
        width: Target width in pixels.

    Returns:
        Encoded thumbnail.

    Raises:
        InvalidImageError: If data is not an image Pillow can read.
    """
    try:
        with Image.open(BytesIO(data)) as image:
            image_format = image.format or _FALLBACK_FORMAT
            height = max(1, round(image.height * width / image.width))
            thumbnail = image.resize(
                (width, height),
                Image.Resampling.LANCZOS,
            )
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
    ) as error:
        raise InvalidImageError() from error

    if image_format == 'JPEG' and thumbnail.mode not in _JPEG_MODES:
        thumbnail = thumbnail.convert('RGB')

    output = BytesIO()
    thumbnail.save(output, format=image_format)
    return output.getvalue()
