from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from dailydrop.auth import require_user
from dailydrop.database import get_db, get_session_factory
from dailydrop.models import User
from dailydrop.schemas import CreateMessageRequest, message_to_dict
from dailydrop.services.conversation import list_messages, post_message, reply_to_message

router = APIRouter(prefix="/api", tags=["messages"])


@router.get("/drops/{drop_id}/messages")
async def drop_messages(
    drop_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Conversation of one of the user's drops, oldest first."""
    return [message_to_dict(m) for m in list_messages(db, user.id, drop_id)]


@router.post("/messages", status_code=201)
async def create_message(
    payload: CreateMessageRequest,
    background_tasks: BackgroundTasks,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
    session_factory=Depends(get_session_factory),
):
    """Store the user's message and schedule the coach's reply."""
    message = post_message(db, user.id, payload.dropId, payload.text)
    background_tasks.add_task(reply_to_message, session_factory, message.drop_id, message.id)
    return message_to_dict(message)
