"""
Quiz API: Main Application
FastAPI application for AI quiz generation, publishing and grading.
"""

from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
import os

from database.database import engine, Base
from database import models  # noqa: F401  (registers tables on Base.metadata)
from generation.gpt_client import build_generation_client

from routers import quizzes, results

logging.basicConfig(level=logging.INFO, format="%(asctime)s  %(levelname)s  %(name)s  %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: create tables + pick the generation client once."""
    Base.metadata.create_all(bind=engine)
    if getattr(app.state, "generation_client", None) is None:
        app.state.generation_client = build_generation_client()
    yield


app = FastAPI(
    title="Quiz API",
    description="Generate quizzes from document text with an LLM, publish them, and grade submissions",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ─── Routers ───────────────────────────────────────────────────────────────────

app.include_router(quizzes.router, prefix="/api")   # /api/quizzes/*
app.include_router(results.router, prefix="/api")   # /api/results/*


@app.get("/")
def root():
    """Health check"""
    return {
        "name": "Quiz API",
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
