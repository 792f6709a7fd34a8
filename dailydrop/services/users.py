"""User profile queries used by login and the settings screen."""

import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from dailydrop.clock import utc_now
from dailydrop.errors import NotFoundError, ValidationError
from dailydrop.models import User

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 255

# Claim name -> User column
PROFILE_CLAIMS = {
    "username": "username",
    "email": "email",
    "first_name": "first_name",
    "last_name": "last_name",
    "profile_image_url": "profile_image_url",
}


def get_user_profile(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def update_user_name(db: Session, user_id: str, name) -> User:
    """Set the display name; it is stored trimmed."""
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Name cannot be empty")
    name = name.strip()
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"Name must be {MAX_NAME_LENGTH} characters or fewer")

    user = get_user_profile(db, user_id)
    if not user:
        raise NotFoundError("User not found")

    user.name = name
    user.updated_at = utc_now()
    db.commit()
    db.refresh(user)
    return user


def upsert_user_profile(db: Session, claims: Dict) -> User:
    """
    Create or refresh a user from identity provider claims.

    Requires "sub"; username falls back to sub. The display name chosen in
    settings is never overwritten.
    """
    user_id = claims.get("sub")
    if not user_id:
        raise ValidationError("Identity claims are missing a subject")
    user_id = str(user_id)

    values = {
        column: claims.get(claim)
        for claim, column in PROFILE_CLAIMS.items()
    }
    values["username"] = values["username"] or user_id

    user = get_user_profile(db, user_id)
    if user is None:
        user = User(id=user_id, **values)
        db.add(user)
        logger.info(f"Created user {user_id}")
    else:
        for column, value in values.items():
            setattr(user, column, value)
        user.updated_at = utc_now()

    db.commit()
    db.refresh(user)
    return user
