"""
Import all models here so that:
1. Base.metadata.create_all() sees every table
2. Relationships between models resolve correctly

Order matters — import parent tables before child tables.
"""

from sessionauth.models.user import User
from sessionauth.models.refresh_session import RefreshSession

__all__ = [
    "User",
    "RefreshSession",
]
