from dailydrop.models.user import User
from dailydrop.models.question import Question, DEFAULT_QUESTIONS
from dailydrop.models.drop import Drop
from dailydrop.models.message import Message
from dailydrop.models.analysis import Analysis, AnalysisDrop

__all__ = [
    "User",
    "Question",
    "DEFAULT_QUESTIONS",
    "Drop",
    "Message",
    "Analysis",
    "AnalysisDrop",
]
