from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from dailydrop.auth import require_user
from dailydrop.database import get_db
from dailydrop.models import User
from dailydrop.schemas import CreateDropRequest, DailyAnswerRequest, drop_to_dict
from dailydrop.services.drops import EntryStore, get_owned_drop

router = APIRouter(prefix="/api/drops", tags=["drops"])


def get_entry_store(
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
) -> EntryStore:
    return EntryStore(db, user.id)


@router.get("")
async def list_drops(store: EntryStore = Depends(get_entry_store)):
    """All of the user's drops."""
    return [drop_to_dict(d) for d in store.list_entries()]


@router.get("/recent")
async def recent_drops(limit: int = 3, store: EntryStore = Depends(get_entry_store)):
    """The first `limit` drops of the list."""
    return [drop_to_dict(d) for d in store.recent_entries(limit)]


@router.get("/latest")
async def latest_drop(store: EntryStore = Depends(get_entry_store)):
    """Id of the most recently created drop (null when there is none)."""
    return {"id": store.latest_entry_id()}


@router.post("", status_code=201)
async def create_drop(
    payload: CreateDropRequest,
    store: EntryStore = Depends(get_entry_store),
):
    """Answer a specific question."""
    drop = store.record_answer(payload.questionId, payload.text)
    return drop_to_dict(drop)


@router.post("/daily", status_code=201)
async def answer_daily_question(
    payload: DailyAnswerRequest,
    store: EntryStore = Depends(get_entry_store),
):
    """Answer today's question; 409 when it was already answered."""
    drop = store.submit_daily_answer(payload.text)
    return drop_to_dict(drop)


@router.get("/{drop_id}")
async def get_drop(
    drop_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    """A single drop; only its owner may read it."""
    return drop_to_dict(get_owned_drop(db, user.id, drop_id))
