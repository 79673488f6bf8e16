"""
Linglong Fu Backend - FastAPI Application Entry Point
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from linglong import __version__
from linglong.api import game

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Linglong Fu",
    description="AI-narrated detective game",
    version=__version__,
)

# Configure CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(game.router, prefix="/api/game", tags=["game"])


@app.get("/")
async def root():
    """Health check endpoint"""
    return {"status": "ok", "name": "Linglong Fu", "version": __version__}


@app.get("/api/cases")
async def list_cases():
    """List available detective cases"""
    from linglong.engine.case import CaseLoader

    loader = CaseLoader()
    return {"cases": loader.list_cases()}
