"""
Session authentication.

Sign-in itself happens at the external identity provider. The provider hands
the browser a claims token signed with IDENTITY_TOKEN_SECRET; /api/login
verifies it and stores the user id in the signed session cookie
(Starlette SessionMiddleware).
"""
import os
from typing import Optional

from fastapi import Request, Depends, HTTPException, status
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired
from sqlalchemy.orm import Session

from dailydrop.database import get_db
from dailydrop.models import User

# Session cookie
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-in-production-min-32-chars")
SESSION_EXPIRE_MINUTES = int(os.getenv("SESSION_EXPIRE_MINUTES", "10080"))
SESSION_COOKIE = "session"

# Identity provider hand-off
IDENTITY_TOKEN_SECRET = os.getenv("IDENTITY_TOKEN_SECRET", SECRET_KEY)
IDENTITY_TOKEN_MAX_AGE = int(os.getenv("IDENTITY_TOKEN_MAX_AGE", "300"))
IDENTITY_TOKEN_SALT = "identity-claims"


def _identity_serializer(secret: Optional[str] = None) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(secret or IDENTITY_TOKEN_SECRET, salt=IDENTITY_TOKEN_SALT)


def create_identity_token(claims: dict, secret: Optional[str] = None) -> str:
    """Sign identity claims (used by the provider bridge and in tests)."""
    return _identity_serializer(secret).dumps(claims)


def decode_identity_token(token: str, max_age: Optional[int] = None) -> Optional[dict]:
    """Verify a claims token. Returns None when invalid or expired."""
    try:
        data = _identity_serializer().loads(
            token, max_age=max_age if max_age is not None else IDENTITY_TOKEN_MAX_AGE
        )
    except (BadSignature, SignatureExpired):
        return None
    if not isinstance(data, dict) or not data.get("sub"):
        return None
    return data


def get_session_user_id(request: Request) -> Optional[str]:
    """Get user ID from the session cookie."""
    return request.session.get("user_id")


def login_session(request: Request, user: User):
    request.session.clear()
    request.session["user_id"] = user.id


def logout_session(request: Request):
    request.session.clear()


def get_current_user_optional(
    request: Request, db: Session = Depends(get_db)
) -> Optional[User]:
    """
    Get the current user from session if logged in.
    Returns None if not authenticated.
    """
    user_id = get_session_user_id(request)
    if not user_id:
        return None
    return db.query(User).filter(User.id == user_id).first()


def require_user(
    user: Optional[User] = Depends(get_current_user_optional),
) -> User:
    """Get the current user; 401 when not authenticated."""
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return user
