"""File store and thumbnail pipeline settings."""

from decouple import Csv

from server.settings.components import config

# Byte store names are `{FILES_STORAGE_PREFIX}/{uuid4}`
FILES_STORAGE_PREFIX = config('FILES_STORAGE_PREFIX', default='files_manager')

# Records per page when listing a folder
FILES_PAGE_SIZE = config('FILES_PAGE_SIZE', cast=int, default=20)

# Thumbnail widths generated for every image
FILES_THUMBNAIL_SIZES = config(
    'FILES_THUMBNAIL_SIZES',
    cast=Csv(int),
    default='500,250,100',
)

# Thumbnail job retry policy
DERIVATIVE_MAX_ATTEMPTS = config('DERIVATIVE_MAX_ATTEMPTS', cast=int, default=5)
DERIVATIVE_BACKOFF_SECONDS = config(
    'DERIVATIVE_BACKOFF_SECONDS',
    cast=float,
    default=2.0,
)
DERIVATIVE_LEASE_SECONDS = config(
    'DERIVATIVE_LEASE_SECONDS',
    cast=int,
    default=300,
)
