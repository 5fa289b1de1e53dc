"""
SQL Analyst - FastAPI Application.

Main entry point for the backend API server.
Answers natural-language questions about an uploaded SQLite
database with a pipeline of LLM agents.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sql_analyst.config import settings
from sql_analyst.database import init_db
from sql_analyst.routes import chat, uploads
from sql_analyst.services.session import AnalystContext

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="SQL Analyst API",
    description=(
        "Upload a SQLite database and ask questions about it. "
        "Answers come back as Markdown, optionally with a chart."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware for frontend development server
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Shared across turns; holds the active database and schema cache
app.state.analyst = AnalystContext()

# Register API routes
app.include_router(uploads.router)
app.include_router(chat.router)


@app.on_event("startup")
def on_startup():
    """Initialize the chat-history store on application startup."""
    init_db()


@app.get("/api/health", tags=["health"])
def health_check():
    """Health check endpoint to verify the API is running."""
    return {"status": "ok"}
