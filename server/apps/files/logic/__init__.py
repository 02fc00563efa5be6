"""Business logic layer for files app.

This package contains all business logic for the file store:
- Metadata persistence, listing and visibility updates
- Access control and folder hierarchy rules
- Upload and retrieval workflow (``FileService``)
- Thumbnail generation for uploaded images
- Service status and statistics

All business logic should be implemented here, separate from
models (data layer), infrastructure (external systems) and views.
"""
