"""Infrastructure layer for files app.

This package contains integrations with external systems:
- Storage backend for S3-compatible blob storage (MinIO/R2/S3)
- Blob and metadata store capabilities and the handles bundling them
- File classification and blob key helpers

Keep infrastructure concerns separate from business logic.
"""
