# mentorhub/main.py
import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from mentorhub.config import settings
from mentorhub.database import Base, engine
from mentorhub import models  # noqa: F401 - register tables on Base.metadata
from mentorhub.api import admin, auth, chat, rating, session, ws
from mentorhub.realtime.broadcaster import broadcaster

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create database tables
Base.metadata.create_all(bind=engine)

# Initialize FastAPI app
app = FastAPI(title="MentorHub API")

UPLOAD_DIR = Path(settings.UPLOAD_DIR)
UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
app.mount(settings.UPLOAD_URL_PREFIX, StaticFiles(directory=str(UPLOAD_DIR)), name="uploads")

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routers
app.include_router(auth.router)      # /auth/*
app.include_router(session.router)   # /sessions/*
app.include_router(chat.router)      # /chat/*
app.include_router(rating.router)    # /ratings/*
app.include_router(admin.router)     # /admin/*
app.include_router(ws.router)        # /ws


@app.get("/health")
def health_check():
    return {
        "status": "healthy",
        "message": "MentorHub API is running",
        "version": "1.0.0",
        "open_sockets": broadcaster.connection_count,
    }
