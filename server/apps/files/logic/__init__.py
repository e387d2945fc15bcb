"""Business logic layer for files app.

This package contains all business logic for file operations:
- Upload saga (blob write, record write, rollback)
- Listing, rename, sharing and delete
- Usage summaries for the dashboard

All business logic should be implemented here, separate from
models (data layer) and infrastructure (external systems).
"""
