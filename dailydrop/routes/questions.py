from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from dailydrop.auth import require_user
from dailydrop.database import get_db
from dailydrop.models import Question, User
from dailydrop.schemas import question_to_dict
from dailydrop.services.daily_question import get_daily_question
from dailydrop.services.drops import EntryStore

router = APIRouter(prefix="/api", tags=["questions"])


@router.get("/daily-question")
async def daily_question(
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Today's question, the same for every user."""
    question = get_daily_question(db)
    return {"question": question.text, "questionId": question.id}


@router.get("/daily-question/status")
async def daily_question_status(
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Today's question plus whether the current user already answered it."""
    question = get_daily_question(db)
    store = EntryStore(db, user.id)
    return {
        "question": question.text,
        "questionId": question.id,
        "answeredToday": store.has_answered_today(question.text),
    }


@router.get("/questions")
async def list_questions(
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    """All questions, pool order."""
    questions = db.query(Question).order_by(Question.id).all()
    return [question_to_dict(q) for q in questions]
