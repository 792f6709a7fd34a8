"""Request bodies and JSON shapes shared by the API routes."""
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class LoginRequest(BaseModel):
    token: str


class CreateDropRequest(BaseModel):
    questionId: int
    text: Optional[str] = None


class DailyAnswerRequest(BaseModel):
    text: Optional[str] = None


class CreateMessageRequest(BaseModel):
    dropId: int
    text: Optional[str] = None


class FavoriteRequest(BaseModel):
    isFavorited: Any = None


class UpdateNameRequest(BaseModel):
    name: Any = None


def _iso(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return dt.isoformat() + "Z" if dt.tzinfo is None else dt.isoformat()


def user_to_dict(user) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "name": user.name,
        "displayName": user.display_name,
        "bio": user.bio,
        "profileImageUrl": user.profile_image_url,
        "createdAt": _iso(user.created_at),
        "updatedAt": _iso(user.updated_at),
        "lastAnalysisDate": _iso(user.last_analysis_date),
    }


def question_to_dict(question) -> dict:
    return {
        "id": question.id,
        "text": question.text,
        "isActive": question.is_active,
        "category": question.category,
        "createdAt": _iso(question.created_at),
    }


def drop_to_dict(drop) -> dict:
    return {
        "id": drop.id,
        "userId": drop.user_id,
        "questionId": drop.question_id,
        "questionText": drop.question_text,
        "text": drop.text,
        "createdAt": _iso(drop.created_at),
        "messageCount": drop.message_count,
    }


def message_to_dict(message) -> dict:
    return {
        "id": message.id,
        "dropId": message.drop_id,
        "text": message.text,
        "fromUser": message.from_user,
        "createdAt": _iso(message.created_at),
    }


def analysis_to_dict(analysis) -> dict:
    return {
        "id": analysis.id,
        "userId": analysis.user_id,
        "content": analysis.content,
        "summary": analysis.summary,
        "bulletPoints": analysis.bullet_points,
        "isFavorited": analysis.is_favorited,
        "createdAt": _iso(analysis.created_at),
        "dropIds": analysis.drop_ids,
    }
