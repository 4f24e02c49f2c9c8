"""FastAPI application entry point."""

import logging
import logging.config
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.api.v1.router import api_router
from config.settings import AUDIO_DIR, DECKS_DIR, FRONTEND_URL, LOGGING_CONFIG
from utils.pipeline import remove_files

logging.config.dictConfig(LOGGING_CONFIG)
logger = logging.getLogger(__name__)


def clear_scratch_dirs():
    """Remove audio and deck files left behind by a previous crash/restart."""
    leftovers = [str(path) for path in AUDIO_DIR.glob("*.mp3")]
    leftovers += [str(path) for path in DECKS_DIR.glob("*.apkg")]
    removed = remove_files(leftovers)
    if removed:
        logger.info(f"Removed {removed} leftover scratch file(s)")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    clear_scratch_dirs()
    yield
    # Shutdown (nothing to do)


app = FastAPI(
    title="Quick Cards API",
    description="API for generating Anki flashcards with audio from word lists",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[FRONTEND_URL],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# The frontend calls the routes at the root; /api/v1 is the versioned alias
app.include_router(api_router)
app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
