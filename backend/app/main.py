from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session

import app.models  # noqa: F401  register SQLModel tables

from app.config import get_settings
from app.db import create_db_and_tables, engine
from app.routers import affirmations, auth, focus, health, journal, profile, stats
from app.services.affirmations import seed_affirmations
from app.services.encryption import ContentCipher

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    create_db_and_tables()
    with Session(engine) as session:
        seed_affirmations(session)

    # Build the cipher eagerly so a bad APP_SECRET aborts startup
    # (ConfigurationError) instead of surfacing on the first journal write.
    app.state.content_cipher = ContentCipher(settings.app_secret)
    logger.info("Journal content cipher initialized")

    yield

    app.state.content_cipher = None


app = FastAPI(
    title="Wellness Journal",
    description="Wellness journal backend with encrypted entries",
    version="0.1.0",
    lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=[f"https://{settings.domain}", *settings.cors_origins],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(health.router)
app.include_router(journal.router)
app.include_router(profile.router)
app.include_router(affirmations.router)
app.include_router(focus.router)
app.include_router(stats.router)
