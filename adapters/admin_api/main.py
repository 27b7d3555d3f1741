"""
Staged Thinking Admin API

Provides:
- Settings (/api/staged-thinking/settings)
- Stage document (/api/staged-thinking/stages)
- Manual trigger (/api/staged-thinking/run)
- System Health (/health)
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from adapters.admin_api.staged_thinking_routes import router as staged_thinking_router
from config import ALLOW_ORIGINS
from core.orchestrator import get_orchestrator
from utils.logger import log_info


def create_app() -> FastAPI:
    app = FastAPI(
        title="Staged Thinking Admin API",
        description="Settings, stage management and manual trigger for the staged thinking pipeline",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Wildcard origin verträgt sich nicht mit credentials
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOW_ORIGINS,
        allow_credentials="*" not in ALLOW_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(staged_thinking_router, prefix="/api/staged-thinking")

    @app.get("/health")
    async def health():
        orch = get_orchestrator()
        return {
            "status": "ok",
            "stages_loaded": orch.stage_source.loaded,
            "pipeline_running": orch.pipeline.running,
        }

    return app


app = create_app()


if __name__ == "__main__":
    log_info("[AdminAPI] Starting on 0.0.0.0:8300")
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("ADMIN_API_PORT", "8300")))
