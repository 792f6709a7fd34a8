from fastapi import APIRouter, Request, Depends, HTTPException
from sqlalchemy.orm import Session

from dailydrop.auth import (
    decode_identity_token,
    login_session,
    logout_session,
    require_user,
)
from dailydrop.database import get_db
from dailydrop.models import User
from dailydrop.schemas import LoginRequest, user_to_dict
from dailydrop.services.users import upsert_user_profile

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/login")
async def login(
    request: Request,
    payload: LoginRequest,
    db: Session = Depends(get_db),
):
    """Exchange an identity provider token for a session."""
    claims = decode_identity_token(payload.token)
    if not claims:
        raise HTTPException(status_code=401, detail="Invalid or expired login token")

    user = upsert_user_profile(db, claims)
    login_session(request, user)
    return user_to_dict(user)


@router.api_route("/logout", methods=["GET", "POST"])
async def logout(request: Request):
    """Log out the current user."""
    logout_session(request)
    return {"message": "Logged out"}


@router.get("/auth/user")
async def current_user(user: User = Depends(require_user)):
    """Return the signed-in user."""
    return user_to_dict(user)
