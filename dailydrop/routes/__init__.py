from dailydrop.routes.auth import router as auth_router
from dailydrop.routes.questions import router as questions_router
from dailydrop.routes.drops import router as drops_router
from dailydrop.routes.messages import router as messages_router
from dailydrop.routes.analyses import router as analyses_router
from dailydrop.routes.users import router as users_router

__all__ = [
    'auth_router',
    'questions_router',
    'drops_router',
    'messages_router',
    'analyses_router',
    'users_router',
]
