from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from dailydrop.auth import require_user
from dailydrop.database import get_db
from dailydrop.errors import ValidationError
from dailydrop.models import User
from dailydrop.schemas import FavoriteRequest, analysis_to_dict
from dailydrop.services import analysis as analysis_service

router = APIRouter(prefix="/api/analyses", tags=["analyses"])


def get_analyzer():
    """Analyzer override hook; None means build a DropAnalyzer on demand."""
    return None


@router.get("/eligibility")
async def eligibility(
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return analysis_service.get_analysis_eligibility(db, user.id)


@router.get("/health")
async def health(db: Session = Depends(get_db)):
    """Analysis dependencies status; 503 when any check fails."""
    result = analysis_service.health_check(db)
    return JSONResponse(result, status_code=200 if result["healthy"] else 503)


@router.post("", status_code=201)
def create_analysis(
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
    analyzer=Depends(get_analyzer),
):
    """Analyze the user's unanalyzed drops. Blocks on the LLM call."""
    analysis = analysis_service.create_analysis_for_user(db, user.id, analyzer=analyzer)
    return analysis_to_dict(analysis)


@router.get("")
async def list_analyses(
    limit: int = 20,
    offset: int = 0,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    analyses = analysis_service.list_analyses(db, user.id, limit=limit, offset=offset)
    return [analysis_to_dict(a) for a in analyses]


@router.get("/{analysis_id}")
async def get_analysis(
    analysis_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return analysis_to_dict(analysis_service.get_analysis(db, user.id, analysis_id))


@router.put("/{analysis_id}/favorite")
async def favorite_analysis(
    analysis_id: int,
    payload: FavoriteRequest,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    if not isinstance(payload.isFavorited, bool):
        raise ValidationError("isFavorited must be a boolean")
    analysis = analysis_service.set_favorite(db, user.id, analysis_id, payload.isFavorited)
    return analysis_to_dict(analysis)
