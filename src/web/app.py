"""
FastAPI application factory for the hazard monitor telemetry API.

Routes:
- /api/telemetry, /api/telemetry/performance, /api/telemetry/hazards
- /api/detections
- /api/controls/confidence (GET, PUT)
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pipeline.channels import TelemetryBus
from .routes import api


def create_app(bus: Optional[TelemetryBus] = None) -> FastAPI:
    """Create the FastAPI app bound to a TelemetryBus."""
    app = FastAPI(
        title="Hazard Monitor",
        version="0.1.0",
        description="Live road hazard detection telemetry",
    )

    # CORS for dashboard development servers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.bus = bus if bus is not None else TelemetryBus()
    app.include_router(api.router, prefix="/api")
    return app
