from dailydrop.services.daily_question import (
    resolve_daily_question,
    get_question_pool,
    get_daily_question,
    has_answered_today,
)
from dailydrop.services.drops import (
    EntryStore,
    record_answer,
    submit_daily_answer,
    get_owned_drop,
)

__all__ = [
    'resolve_daily_question',
    'get_question_pool',
    'get_daily_question',
    'has_answered_today',
    'EntryStore',
    'record_answer',
    'submit_daily_answer',
    'get_owned_drop',
]
