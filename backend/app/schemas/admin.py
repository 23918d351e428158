"""
Admin API schemas.
"""

from typing import List
from backend.app.schemas.common import CamelModel
from backend.app.schemas.user import UserProfile


class UserListResponse(CamelModel):
    """
    Schema for paginated user listing.

    Used by GET /admin/users endpoint.
    """
    success: bool = True
    total: int
    count: int
    users: List[UserProfile]
