"""
Admin API Endpoints.

Read-only user administration. Access is limited to localhost (unless
ADMIN_ALLOW_REMOTE is set) and requires the x-admin-token header.
"""

import csv
import io
import json
from typing import Optional
from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.admin import UserListResponse
from backend.app.schemas.user import UserProfile
from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.core.guards import require_admin

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])

DEFAULT_LIMIT = 50
MAX_LIMIT = 200

EXPORT_COLUMNS = (
    ("id", "id"),
    ("phoneNumber", "phone_number"),
    ("name", "name"),
    ("email", "email"),
    ("aadhaarNumber", "aadhaar_number"),
    ("dateOfBirth", "date_of_birth"),
    ("age", "age"),
    ("emergencyContact", "emergency_contact"),
    ("profilePhotoUrl", "profile_photo_url"),
    ("profileCompleteness", "profile_completeness"),
    ("createdAt", "created_at"),
    ("updatedAt", "updated_at"),
)


def _parse_int(value: Optional[str]) -> Optional[int]:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def clamp_limit(value: Optional[str]) -> int:
    limit = _parse_int(value)
    if limit is None:
        return DEFAULT_LIMIT
    return min(max(limit, 1), MAX_LIMIT)


def clamp_skip(value: Optional[str]) -> int:
    return max(_parse_int(value) or 0, 0)


def _search_filter(q: Optional[str]):
    """Case-insensitive substring match over phone, name and email."""
    q = (q or "").strip()
    if not q:
        return None
    escaped = q.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{escaped}%"
    return or_(
        User.phone_number.ilike(pattern, escape="\\"),
        User.name.ilike(pattern, escape="\\"),
        User.email.ilike(pattern, escape="\\"),
    )


def _filtered(query, q: Optional[str]):
    condition = _search_filter(q)
    return query.where(condition) if condition is not None else query


@router.get("/users", response_model=UserListResponse)
async def list_users(
    q: Optional[str] = Query(default=None, description="Search phone, name or email"),
    limit: Optional[str] = Query(default=None, description="Page size, 1-200"),
    skip: Optional[str] = Query(default=None, description="Rows to skip"),
    db: AsyncSession = Depends(get_db)
):
    """
    List users, newest first.

    Returns the page plus the total number of matching users.
    """
    total_result = await db.execute(_filtered(select(func.count(User.id)), q))
    total = total_result.scalar()

    query = (
        _filtered(select(User), q)
        .order_by(User.created_at.desc(), User.id.desc())
        .offset(clamp_skip(skip))
        .limit(clamp_limit(limit))
    )
    result = await db.execute(query)
    users = result.scalars().all()

    return UserListResponse(
        total=total,
        count=len(users),
        users=[UserProfile.model_validate(user) for user in users],
    )


def users_to_csv(users) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow([header for header, _ in EXPORT_COLUMNS])
    for user in users:
        row = []
        for _, attribute in EXPORT_COLUMNS:
            value = getattr(user, attribute)
            row.append("" if value is None else value)
        writer.writerow(row)
    return buffer.getvalue()


@router.get("/users/export")
async def export_users(
    q: Optional[str] = Query(default=None),
    format: str = Query(default="json", description="json or csv"),
    db: AsyncSession = Depends(get_db)
):
    """Download all matching users as JSON or CSV."""
    result = await db.execute(_filtered(select(User), q).order_by(User.created_at.desc(), User.id.desc()))
    users = result.scalars().all()

    if format.strip().lower() == "csv":
        return Response(
            content=users_to_csv(users),
            media_type="text/csv; charset=utf-8",
            headers={"content-disposition": 'attachment; filename="users.csv"'},
        )

    payload = {
        "success": True,
        "count": len(users),
        "users": jsonable_encoder([UserProfile.model_validate(user) for user in users]),
    }
    return Response(
        content=json.dumps(payload, indent=2),
        media_type="application/json; charset=utf-8",
        headers={"content-disposition": 'attachment; filename="users.json"'},
    )


@router.get("/users/by-phone/{phone_number}")
async def get_user_by_phone(
    phone_number: str,
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(select(User).where(User.phone_number == phone_number.strip()))
    user = result.scalar_one_or_none()
    if not user:
        raise ResourceNotFoundError("User not found", error_code="USER_NOT_FOUND")
    return {"success": True, "user": UserProfile.model_validate(user)}


@router.get("/users/{user_id}")
async def get_user(
    user_id: int,
    db: AsyncSession = Depends(get_db)
):
    user = await db.get(User, user_id)
    if not user:
        raise ResourceNotFoundError("User not found", error_code="USER_NOT_FOUND")
    return {"success": True, "user": UserProfile.model_validate(user)}
