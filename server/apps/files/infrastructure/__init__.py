"""Infrastructure layer for files app.

This package contains integrations with external systems:
- Byte store over Django storages (S3/MinIO, in-memory for tests)
- Durable derivative job queue
- Image resizing for thumbnails
- Naming and content helpers (storage names, MIME types, payloads)

Keep infrastructure concerns separate from business logic.
"""
