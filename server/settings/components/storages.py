"""Django storage configuration for S3-compatible backends.

User files and their thumbnails go to an S3-compatible bucket:
- MinIO for local development
- any S3 provider in production

Bucket and credentials default to the local MinIO ones in development
only; other environments fail to start without them.

Names are generated (uuid4) or derived deterministically from them,
so the backend is allowed to overwrite: regenerating a thumbnail
replaces the previous copy.
"""

from typing import Any, Final

from server.settings.components import config, development_default

STORAGES: Final[dict[str, dict[str, Any]]] = {
    'default': {
        'BACKEND': 'server.apps.files.infrastructure.storage.FileStorage',
        'OPTIONS': {
            'bucket_name': config(
                'AWS_STORAGE_BUCKET_NAME',
                default=development_default('files-manager'),
            ),
            'access_key': config(
                'AWS_ACCESS_KEY_ID',
                default=development_default('minioadmin'),
            ),
            'secret_key': config(
                'AWS_SECRET_ACCESS_KEY',
                default=development_default('minioadmin'),
            ),
            'endpoint_url': config(
                'AWS_S3_ENDPOINT_URL',
                default=None,
            ),
            'region_name': config(
                'AWS_S3_REGION_NAME',
                default='us-east-1',
            ),
            'file_overwrite': True,
            'default_acl': None,  # Inherit bucket ACL
        },
    },
    'staticfiles': {
        'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
    },
}
