# mental health journal backend api
# fastapi app with async mongodb, google sign-in, gemini companion and google nlp analysis

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.services.db import db
from app.routers import auth, journal, chat, crisis

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """startup: connect to mongodb. shutdown: close connection."""
    logger.info("Starting Mental Health Journal backend...")
    await db.connect()
    logger.info("Mental Health Journal backend ready")
    yield
    logger.info("Shutting down Mental Health Journal backend...")
    await db.close()


app = FastAPI(
    title="Mental Health Journal API",
    description="Backend API for the mental health journal: entry analysis, voice journaling, streaks, companion chat and crisis support",
    version="0.1.0",
    lifespan=lifespan,
)

# cors, allow frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# register routers
app.include_router(auth.router)
app.include_router(journal.router)
app.include_router(chat.router)
app.include_router(crisis.router)


@app.get("/health")
async def health_check():
    """basic health check endpoint"""
    return {"status": "ok", "service": "mental-health-journal-api"}
