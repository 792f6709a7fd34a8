"""
Analysis Service

Turns a batch of a user's recent drops (and their coach conversations) into
an AI-written analysis.

Rules:
- Unanalyzed drops = drops created at or after user.last_analysis_date
  (every drop when the user was never analyzed)
- A user is eligible with at least REQUIRED_DROP_COUNT unanalyzed drops
- At most one analysis in flight per user (per process)
- At least MIN_MINUTES_BETWEEN_ANALYSES between two analyses
- Every drop must have at least MIN_ENTRY_LENGTH characters of text

The LLM answer is expected in SUMMARY / ANALYSIS / INSIGHTS sections; any
missing section falls back to a fixed default.
"""

import logging
import math
import os
import re
import threading
from datetime import datetime, timedelta
from typing import Dict, List, Optional

import anthropic
from sqlalchemy.orm import Session, selectinload

from dailydrop.clock import to_utc_naive, utc_now
from dailydrop.database import check_connection
from dailydrop.errors import (
    AccessDeniedError,
    AnalysisInProgressError,
    AnalysisRateLimitError,
    AnalysisServiceError,
    AnalysisValidationError,
    NotFoundError,
)
from dailydrop.models import Analysis, AnalysisDrop, Drop, User

logger = logging.getLogger(__name__)

REQUIRED_DROP_COUNT = 7
MIN_MINUTES_BETWEEN_ANALYSES = 30
MIN_ENTRY_LENGTH = 10
MAX_SUMMARY_LENGTH = 100
MAX_BULLET_POINTS = 5

ANALYSIS_CONFIG = {
    "model": "claude-3-7-sonnet-20250219",
    "max_tokens": 3000,
    "temperature": 0.3,
    "max_retries": 2,
    "timeout": 30.0,
}

DEFAULT_SUMMARY = "Personal growth insights identified"
DEFAULT_CONTENT = "Analysis content unavailable"
DEFAULT_BULLET_POINTS = "• Key insights will be identified in future analyses"

ERROR_MESSAGES = {
    "insufficient_drops": (
        "You need at least {required} journal entries to create an analysis. "
        "You currently have {count} unanalyzed entries."
    ),
    "network": (
        "Unable to connect to our analysis service. "
        "Please check your internet connection and try again."
    ),
    "timeout": "Analysis took too long to complete. Please try again with fewer entries.",
    "integrity": "Analysis data validation failed. Please try again or contact support.",
}

# Users with an analysis currently being generated
_ongoing_analyses = set()
_ongoing_lock = threading.Lock()


def has_ongoing_analysis(user_id: str) -> bool:
    with _ongoing_lock:
        return user_id in _ongoing_analyses


def _claim(user_id: str) -> bool:
    with _ongoing_lock:
        if user_id in _ongoing_analyses:
            return False
        _ongoing_analyses.add(user_id)
        return True


def _release(user_id: str):
    with _ongoing_lock:
        _ongoing_analyses.discard(user_id)


# ============================================================
# ELIGIBILITY
# ============================================================

def get_unanalyzed_drops(db: Session, user: User) -> List[Drop]:
    """Drops not covered by an earlier analysis, oldest first, with messages."""
    query = (
        db.query(Drop)
        .options(selectinload(Drop.messages))
        .filter(Drop.user_id == user.id)
    )
    if user.last_analysis_date:
        query = query.filter(Drop.created_at >= user.last_analysis_date)
    return query.order_by(Drop.created_at, Drop.id).all()


def get_analysis_eligibility(db: Session, user_id: str) -> Dict:
    """Eligibility summary for the analysis screen."""
    user = db.query(User).filter(User.id == user_id).first()
    count = 0
    if user:
        query = db.query(Drop).filter(Drop.user_id == user_id)
        if user.last_analysis_date:
            query = query.filter(Drop.created_at >= user.last_analysis_date)
        count = query.count()

    return {
        "isEligible": count >= REQUIRED_DROP_COUNT,
        "unanalyzedCount": count,
        "requiredCount": REQUIRED_DROP_COUNT,
    }


def check_drop_integrity(drops: List[Drop]) -> Optional[str]:
    """Return a user-facing problem description, or None when drops are usable."""
    if not drops:
        return "No valid journal entries found for analysis."
    for drop in drops:
        if not drop.id or not drop.text or not drop.user_id:
            return "Some journal entries have missing data. Please contact support."
        if len(drop.text.strip()) < MIN_ENTRY_LENGTH:
            return "Some journal entries are too short for meaningful analysis."
        if drop.created_at is None:
            return "Some journal entries have invalid dates. Please contact support."
    return None


# ============================================================
# PROMPT AND PARSING
# ============================================================

def build_analysis_prompt(drops: List[Drop]) -> str:
    """Compile drops and their conversations into the analysis prompt."""
    entries = []
    for number, drop in enumerate(drops, start=1):
        lines = [
            f"ENTRY {number} ({drop.created_at.strftime('%b %d, %Y')}):",
            f'Question: "{drop.question_text}"',
            f'Initial Response: "{drop.text}"',
        ]
        if drop.messages:
            lines.append("Conversation:")
            for message in drop.messages:
                speaker = "User" if message.from_user else "Coach"
                lines.append(f'{speaker}: "{message.text}"')
        entries.append("\n".join(lines))

    compiled = "\n---\n\n".join(entries)

    return f"""You are an expert life coach and therapist specializing in cognitive behavioral therapy (CBT), positive psychology, and personal development. You will analyze a series of journal entries and conversations to provide deep, actionable insights.

ANALYSIS TASK:
Analyze the following {len(drops)} journal entries and their conversations to identify patterns, growth opportunities, and insights the person may not recognize about themselves.

REQUIRED OUTPUT FORMAT:
Your response must be structured exactly as follows:

SUMMARY: [One-line insight in 15 words or less - the most important takeaway]

ANALYSIS:
[Paragraph 1: Identify 2-3 key emotional or behavioral patterns you observe across entries]

[Paragraph 2: Highlight growth areas, blind spots, or recurring themes using CBT principles]

[Paragraph 3: Provide specific, actionable recommendations for continued growth]

INSIGHTS:
• [Key insight 1 - specific pattern or recommendation]
• [Key insight 2 - growth opportunity or strength]
• [Key insight 3 - actionable next step or mindset shift]
• [Key insight 4 - behavioral or emotional pattern] (optional)
• [Key insight 5 - deeper psychological insight] (optional)

GUIDELINES:
- Be direct, insightful, and encouraging
- Focus on patterns across multiple entries, not individual responses
- Use CBT frameworks to identify cognitive patterns and suggest reframes
- Highlight both strengths and growth opportunities
- Keep the analysis practical and actionable
- Maintain a supportive, non-judgmental tone
- Limit the analysis to exactly 3 paragraphs
- Provide 3-5 bullet points (3 minimum, 5 maximum)

JOURNAL ENTRIES TO ANALYZE:

{compiled}"""


_INSIGHTS_HEADINGS = [
    re.compile(r"^#{1,2}\s*(?:KEY\s+)?INSIGHTS.*$", re.I | re.M),
    re.compile(r"^(?:KEY\s+)?INSIGHTS\s*:.*$", re.I | re.M),
    re.compile(r"^\*\*(?:KEY\s+)?INSIGHTS\*\*.*$", re.I | re.M),
]


def parse_analysis_response(raw: str) -> Dict[str, str]:
    """
    Split an LLM answer into summary, content and bullet_points.

    Returns:
        Dict with summary (<= MAX_SUMMARY_LENGTH chars), content and
        bullet_points (<= MAX_BULLET_POINTS newline separated lines)
    """
    raw = raw or ""

    summary_match = re.search(r"SUMMARY:\s*(.+?)(?:\n|$)", raw, re.I)
    summary = summary_match.group(1).strip() if summary_match else ""
    summary = (summary or DEFAULT_SUMMARY)[:MAX_SUMMARY_LENGTH]

    content_match = re.search(
        r"ANALYSIS:\s*([\s\S]*?)(?:\n(?:##\s*)?(?:KEY\s+)?INSIGHTS|$)", raw, re.I
    )
    content = content_match.group(1) if content_match else ""
    for heading in _INSIGHTS_HEADINGS:
        content = heading.split(content)[0]
    content = re.sub(r"\n{3,}", "\n\n", content).strip() or DEFAULT_CONTENT

    bullet_points = DEFAULT_BULLET_POINTS
    insights_match = re.search(r"INSIGHTS:\s*([\s\S]*)$", raw, re.I)
    if insights_match:
        bullets = [
            line.strip()
            for line in insights_match.group(1).split("\n")
            if line.strip().startswith(("•", "-"))
        ]
        if bullets:
            bullet_points = "\n".join(bullets[:MAX_BULLET_POINTS])

    return {
        "summary": summary,
        "content": content,
        "bullet_points": bullet_points,
    }


# ============================================================
# LLM CLIENT
# ============================================================

class DropAnalyzer:
    """Sends the analysis prompt to Claude."""

    def __init__(self, client=None, model: Optional[str] = None):
        if client is None:
            api_key = os.getenv('ANTHROPIC_API_KEY')
            if not api_key:
                raise ValueError("ANTHROPIC_API_KEY environment variable not set")
            # The SDK retries with exponential backoff
            client = anthropic.Anthropic(
                api_key=api_key,
                max_retries=ANALYSIS_CONFIG["max_retries"],
                timeout=ANALYSIS_CONFIG["timeout"],
            )
        self.client = client
        self.model = model or os.getenv('ANTHROPIC_MODEL', ANALYSIS_CONFIG["model"])

    def analyze(self, prompt: str) -> str:
        response = self.client.messages.create(
            model=self.model,
            max_tokens=ANALYSIS_CONFIG["max_tokens"],
            temperature=ANALYSIS_CONFIG["temperature"],
            messages=[{"role": "user", "content": prompt}],
        )
        return "".join(block.text for block in response.content if block.type == "text")


def _run_analyzer(analyzer: Optional[DropAnalyzer], prompt: str, drop_count: int) -> str:
    if analyzer is None:
        try:
            analyzer = DropAnalyzer()
        except ValueError:
            logger.warning("ANTHROPIC_API_KEY not set; analysis unavailable")
            raise AnalysisServiceError(drop_count=drop_count)

    try:
        return analyzer.analyze(prompt)
    except anthropic.APITimeoutError:
        logger.exception("Analysis request timed out")
        raise AnalysisServiceError(ERROR_MESSAGES["timeout"], drop_count=drop_count, error_type="network")
    except anthropic.APIConnectionError:
        logger.exception("Analysis service unreachable")
        raise AnalysisServiceError(ERROR_MESSAGES["network"], drop_count=drop_count, error_type="network")
    except anthropic.RateLimitError:
        logger.exception("Analysis service rate limited")
        raise AnalysisRateLimitError(drop_count=drop_count)
    except anthropic.APIError:
        logger.exception("Analysis generation failed")
        raise AnalysisServiceError(drop_count=drop_count)


# ============================================================
# WORKFLOW
# ============================================================

def create_analysis_for_user(
    db: Session,
    user_id: str,
    analyzer: Optional[DropAnalyzer] = None,
    now: Optional[datetime] = None
) -> Analysis:
    """
    Generate and store an analysis of the user's unanalyzed drops.

    Raises:
        AnalysisInProgressError: another analysis is running for this user
        NotFoundError: unknown user
        AnalysisValidationError: too few drops or unusable drop data
        AnalysisRateLimitError: last analysis too recent, or the LLM rate limited us
        AnalysisServiceError: the LLM call failed
    """
    now = to_utc_naive(now) if now else utc_now()

    if not _claim(user_id):
        raise AnalysisInProgressError()

    try:
        logger.info(f"Starting analysis for user {user_id}")

        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User not found. Please log in again.")

        drops = get_unanalyzed_drops(db, user)
        if len(drops) < REQUIRED_DROP_COUNT:
            raise AnalysisValidationError(
                ERROR_MESSAGES["insufficient_drops"].format(
                    required=REQUIRED_DROP_COUNT, count=len(drops)
                ),
                drop_count=len(drops),
            )

        if user.last_analysis_date:
            wait = timedelta(minutes=MIN_MINUTES_BETWEEN_ANALYSES) - (now - user.last_analysis_date)
            if wait > timedelta(0):
                minutes = math.ceil(wait.total_seconds() / 60)
                raise AnalysisRateLimitError(
                    f"Please wait {minutes} minutes before creating another analysis.",
                    drop_count=len(drops),
                )

        problem = check_drop_integrity(drops)
        if problem:
            raise AnalysisValidationError(problem, drop_count=len(drops), error_type="integrity")

        logger.info(f"Analyzing {len(drops)} drops for user {user_id}")
        raw = _run_analyzer(analyzer, build_analysis_prompt(drops), len(drops))
        parsed = parse_analysis_response(raw)

        analysis = Analysis(
            user_id=user_id,
            content=parsed["content"],
            summary=parsed["summary"],
            bullet_points=parsed["bullet_points"],
            created_at=now,
        )
        analysis.analysis_drops = [
            AnalysisDrop(drop_id=drop.id, created_at=now) for drop in drops
        ]
        db.add(analysis)
        user.last_analysis_date = now

        try:
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(analysis)
        logger.info(f"Created analysis {analysis.id} for user {user_id}: {analysis.summary!r}")
        return analysis
    finally:
        _release(user_id)


def list_analyses(db: Session, user_id: str, limit: int = 20, offset: int = 0) -> List[Analysis]:
    """The user's analyses, newest first."""
    return (
        db.query(Analysis)
        .options(selectinload(Analysis.analysis_drops))
        .filter(Analysis.user_id == user_id)
        .order_by(Analysis.created_at.desc(), Analysis.id.desc())
        .offset(max(offset, 0))
        .limit(max(limit, 0))
        .all()
    )


def get_analysis(db: Session, user_id: str, analysis_id: int) -> Analysis:
    analysis = db.query(Analysis).filter(Analysis.id == analysis_id).first()
    if not analysis:
        raise NotFoundError("Analysis not found")
    if analysis.user_id != user_id:
        raise AccessDeniedError()
    return analysis


def set_favorite(db: Session, user_id: str, analysis_id: int, is_favorited: bool) -> Analysis:
    analysis = get_analysis(db, user_id, analysis_id)
    analysis.is_favorited = is_favorited
    db.commit()
    db.refresh(analysis)
    return analysis


def health_check(db: Session) -> Dict:
    """Report whether analyses can be generated and stored."""
    checks = {
        "anthropicApiKey": bool(os.getenv('ANTHROPIC_API_KEY')),
        "databaseConnection": check_connection(db.get_bind()),
        "storageService": False,
    }

    try:
        list_analyses(db, "health-check-user", limit=1)
        checks["storageService"] = True
    except Exception:
        db.rollback()
        logger.exception("Analysis storage health check failed")

    return {
        "healthy": all(checks.values()),
        "checks": checks,
    }
