"""Export API routes"""

import sys
from pathlib import Path
from fastapi import APIRouter, BackgroundTasks, HTTPException

sys.path.insert(0, str(Path(__file__).parent.parent.parent.parent))

from utils.logger import logger
from backend.ffmpeg_utils import FFmpegProgressTracker
from core.export_session import ExportInProgressError, ExportProgress
from web_ui.api.routes.editor import get_editor, get_pipeline
from web_ui.api.schemas.export_schemas import (
    ExportRequest,
    ExportProgressResponse,
    ExportPlanResponse,
)

router = APIRouter()


def _progress_response(progress: ExportProgress) -> ExportProgressResponse:
    eta = progress.estimated_seconds_remaining
    return ExportProgressResponse(
        status=progress.status.value,
        progress=round(progress.progress, 1),
        message=progress.message,
        estimated_seconds_remaining=eta,
        eta_formatted=FFmpegProgressTracker.format_eta(eta) if eta is not None else None,
        output_path=progress.output_path,
    )


@router.get("/sessions/{session_id}/export/plan", response_model=ExportPlanResponse)
async def get_export_plan(session_id: str):
    """Compile the session's current state without exporting"""
    editor = get_editor(session_id)
    plan = editor.compile_export()
    return ExportPlanResponse(**plan.to_dict())


@router.post("/sessions/{session_id}/export", response_model=ExportProgressResponse)
async def start_export(session_id: str, body: ExportRequest, background_tasks: BackgroundTasks):
    """
    Start exporting a session.

    Only one export per session: a second request while one is preparing
    or encoding gets 409. Poll /export/status for progress.
    """
    pipeline = get_pipeline(session_id)
    try:
        generation = pipeline.start()
    except ExportInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except RuntimeError as e:
        # Previous export failed and has not been reset
        raise HTTPException(status_code=409, detail=f"{e}. Reset the export first.")

    logger.info(f"Export queued for session {session_id} (generation {generation})")
    background_tasks.add_task(pipeline.run, generation, body.output_path)
    return _progress_response(pipeline.editor.export_session.progress)


@router.get("/sessions/{session_id}/export/status", response_model=ExportProgressResponse)
async def get_export_status(session_id: str):
    editor = get_editor(session_id)
    return _progress_response(editor.export_session.progress)


@router.post("/sessions/{session_id}/export/cancel", response_model=ExportProgressResponse)
async def cancel_export(session_id: str):
    pipeline = get_pipeline(session_id)
    if not pipeline.cancel():
        raise HTTPException(status_code=400, detail="No export in progress")
    return _progress_response(pipeline.editor.export_session.progress)


@router.post("/sessions/{session_id}/export/reset", response_model=ExportProgressResponse)
async def reset_export(session_id: str):
    """Clear a finished or failed export so a new one can start"""
    editor = get_editor(session_id)
    editor.export_session.reset()
    return _progress_response(editor.export_session.progress)
