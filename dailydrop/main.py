import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

from dailydrop import __version__
from dailydrop.auth import SECRET_KEY, SESSION_COOKIE, SESSION_EXPIRE_MINUTES
from dailydrop.database import init_db, DATABASE_URL
from dailydrop.errors import DropError
from dailydrop.routes import (
    auth_router,
    questions_router,
    drops_router,
    messages_router,
    analyses_router,
    users_router,
)

# Create FastAPI app
app = FastAPI(
    title="Daily Drop",
    description="Daily reflection journal",
    version=__version__,
)

app.add_middleware(
    SessionMiddleware,
    secret_key=SECRET_KEY,
    session_cookie=SESSION_COOKIE,
    max_age=SESSION_EXPIRE_MINUTES * 60,
    same_site="lax",
    https_only=os.getenv("SESSION_HTTPS_ONLY", "false").lower() == "true",
)

# Include routers
app.include_router(auth_router)
app.include_router(questions_router)
app.include_router(drops_router)
app.include_router(messages_router)
app.include_router(analyses_router)
app.include_router(users_router)


@app.on_event("startup")
def on_startup():
    """Ensure DB is reachable and initialized at startup."""
    if not os.getenv("ANTHROPIC_API_KEY"):
        logger.warning(
            "ANTHROPIC_API_KEY is not set; coach replies and analyses will be unavailable"
        )
    try:
        init_db()
    except Exception as e:
        raise RuntimeError(
            f"Database initialization failed for DATABASE_URL={DATABASE_URL}: {e}"
        ) from e


# Error handlers
@app.exception_handler(DropError)
async def drop_error_handler(request: Request, exc: DropError):
    """Render domain errors as their to_dict() body with their status."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Same {"message": ...} shape for framework errors."""
    return JSONResponse(
        {"message": exc.detail},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are a 400, not a 422."""
    return JSONResponse(
        {"message": "Invalid request data", "errors": jsonable_encoder(exc.errors())},
        status_code=400,
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("dailydrop.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")), reload=True)
