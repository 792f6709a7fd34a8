from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from dailydrop.auth import require_user
from dailydrop.database import get_db
from dailydrop.errors import NotFoundError, ValidationError
from dailydrop.models import User
from dailydrop.schemas import UpdateNameRequest, user_to_dict
from dailydrop.services.users import get_user_profile, update_user_name

router = APIRouter(prefix="/api/user", tags=["users"])


@router.get("/profile")
async def profile(
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Settings screen profile."""
    profile = get_user_profile(db, user.id)
    if not profile:
        raise NotFoundError("User profile not found")
    return user_to_dict(profile)


@router.put("/update-name")
async def update_name(
    payload: UpdateNameRequest,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Change the display name shown in settings."""
    if not isinstance(payload.name, str) or not payload.name.strip():
        raise ValidationError("Name is required and must be a non-empty string")

    updated = update_user_name(db, user.id, payload.name)
    return {"message": "Name updated successfully", "user": user_to_dict(updated)}
