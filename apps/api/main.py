"""
VidTube - FastAPI Backend
Main application entry point with health check and API routing.
"""

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings, validate_security_settings
from database import Database
import models  # noqa: F401
from routers import (
    health,
    users,
    videos,
    comments,
    likes,
    subscriptions,
    tweets,
    playlists,
    dashboard,
)
from routers.responses import error_response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    print("🚀 Starting VidTube API...")
    validate_security_settings()
    Path(settings.MEDIA_ROOT).mkdir(parents=True, exist_ok=True)
    database = Database(settings.DATABASE_URL)
    await database.connect()
    app.state.database = database
    if settings.AUTO_CREATE_DB_SCHEMA:
        try:
            await database.create_schema()
            print("🗄️ Database schema verified.")
        except Exception as e:
            print(f"⚠️ Database bootstrap skipped: {e}")
    yield
    # Shutdown
    await database.disconnect()
    app.state.database = None
    print("👋 Shutting down API...")


app = FastAPI(
    title="VidTube API",
    description="Video sharing backend: channels, videos, comments, likes, playlists and tweets",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return error_response(422, "Invalid request", data=jsonable_encoder(exc.errors()))


# Include routers
api = settings.API_PREFIX
app.include_router(health.router, tags=["Health"])
app.include_router(users.router, prefix=f"{api}/users", tags=["Users"])
app.include_router(videos.router, prefix=f"{api}/videos", tags=["Videos"])
app.include_router(comments.router, prefix=f"{api}/comments", tags=["Comments"])
app.include_router(likes.router, prefix=f"{api}/likes", tags=["Likes"])
app.include_router(subscriptions.router, prefix=f"{api}/subscriptions", tags=["Subscriptions"])
app.include_router(tweets.router, prefix=f"{api}/tweets", tags=["Tweets"])
app.include_router(playlists.router, prefix=f"{api}/playlist", tags=["Playlists"])
app.include_router(dashboard.router, prefix=f"{api}/dashboard", tags=["Dashboard"])

app.mount("/media", StaticFiles(directory=settings.MEDIA_ROOT, check_dir=False), name="media")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "VidTube API",
        "version": "0.1.0",
        "status": "running"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.API_HOST, port=settings.API_PORT)
