"""
FastAPI application factory for the stop-line monitor.

Routes:
- /api/status -> live detection state
- /api/violations/* -> event log and evidence
- /api/monitoring/{start,stop} -> session control
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from runtime.session import MonitoringSession
from .routes import api


def create_app(session: MonitoringSession) -> FastAPI:
    """Create the FastAPI app bound to a monitoring session."""
    app = FastAPI(
        title="Stop-Line Monitor",
        version="0.1.0",
        description="Stop-before-the-line compliance monitor",
    )
    app.state.session = session

    # CORS for development (Vite dev server)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api.router, prefix="/api")
    return app
