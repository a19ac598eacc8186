"""
Titan Editor Web API - Main FastAPI Application

Editor sessions (trim, overlays, output frame, undo/redo) and exports
over HTTP. Each session owns one Editor; nothing is shared between them.
"""

import os
import sys
from pathlib import Path
from contextlib import asynccontextmanager

# Add parent directory to path to import existing modules
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from utils.logger import logger

# Server configuration from environment
TITAN_HOST = os.getenv("TITAN_HOST", "localhost")
TITAN_PORT = int(os.getenv("TITAN_PORT", "8000"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events"""
    # Startup
    settings.create_directories()
    logger.info(f"Titan Editor API on http://{TITAN_HOST}:{TITAN_PORT} (docs at /docs)")
    yield
    # Shutdown
    from web_ui.api.routes.editor import editor_sessions
    for editor in editor_sessions.values():
        editor.export_session.cancel()
    logger.info("Titan Editor API shutting down...")


app = FastAPI(
    title="Titan Editor API",
    description="Trim, caption and export videos",
    version="1.0.0",
    lifespan=lifespan,
    redirect_slashes=False,  # Don't redirect /path to /path/ - causes CORS issues
)

cors_origins = [
    "http://localhost:5173",
    "http://localhost:3000",
    "http://127.0.0.1:5173",
]

# Add custom hostname origins if configured
if TITAN_HOST and TITAN_HOST not in ["localhost", "127.0.0.1"]:
    cors_origins.extend([
        f"http://{TITAN_HOST}:5173",
        f"http://{TITAN_HOST}:{TITAN_PORT}",
    ])

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["Accept", "Content-Type", "Origin", "X-Requested-With"],
)

# Import and include routers
from web_ui.api.routes import editor, export

app.include_router(editor.router, prefix="/api/v1/editor", tags=["Editor"])
app.include_router(export.router, prefix="/api/v1/editor", tags=["Export"])


@app.get("/")
async def root():
    """API root endpoint"""
    return {
        "name": "Titan Editor API",
        "version": "1.0.0",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=TITAN_PORT)
