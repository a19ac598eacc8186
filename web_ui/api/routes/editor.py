"""Editor session API routes"""

import sys
from pathlib import Path
from typing import Dict
from uuid import uuid4
from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import FileResponse

sys.path.insert(0, str(Path(__file__).parent.parent.parent.parent))

from config import settings
from utils.logger import logger
from backend.ffmpeg_utils import FFmpegUtils
from backend.media_validation import (
    VideoValidationError,
    load_video_source,
    validate_metadata,
    validate_video_file,
)
from core.editor import Editor
from core.export_pipeline import ExportPipeline
from core.preferences import PreferenceStore
from models.time_range import seek as clamp_to_trim
from models.video import VideoSource
from web_ui.api.schemas.editor_schemas import (
    SessionCreate,
    SessionResponse,
    OverlayCreate,
    OverlayUpdate,
    OverlayReorder,
    OverlayResponse,
    SelectRequest,
    TrimRequest,
    SeekRequest,
    AspectRatioRequest,
    ExportSettingsUpdate,
    PlaybackUpdate,
    HistoryResponse,
)

router = APIRouter()

# Open editor sessions and their export pipelines, keyed by session id
editor_sessions: Dict[str, Editor] = {}
export_pipelines: Dict[str, ExportPipeline] = {}


def get_editor(session_id: str) -> Editor:
    editor = editor_sessions.get(session_id)
    if editor is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return editor


def get_pipeline(session_id: str) -> ExportPipeline:
    editor = get_editor(session_id)
    pipeline = export_pipelines.get(session_id)
    if pipeline is None:
        pipeline = ExportPipeline(editor)
        export_pipelines[session_id] = pipeline
    return pipeline


def _require_overlay(editor: Editor, overlay_id: str) -> None:
    if overlay_id not in editor.overlays:
        raise HTTPException(status_code=404, detail="Overlay not found")


def _video_from_request(body: SessionCreate) -> VideoSource:
    metadata = None
    if body.duration is not None:
        metadata = {
            "duration": body.duration,
            "width": body.width,
            "height": body.height,
            "fps": body.fps,
        }

    if body.path:
        return load_video_source(body.path, body.mime_type, metadata)

    validate_video_file(body.size_bytes, body.mime_type)
    if metadata is None:
        raise VideoValidationError("Either a file path or the video metadata is required.")
    validate_metadata(body.duration, body.width, body.height)
    return VideoSource(
        name=body.name or "untitled",
        duration=float(body.duration),
        width=int(body.width),
        height=int(body.height),
        size_bytes=body.size_bytes,
        mime_type=body.mime_type,
        fps=body.fps,
    )


@router.post("/sessions", response_model=SessionResponse)
async def create_session(body: SessionCreate):
    """Validate a video and open an editor session on it"""
    try:
        source = _video_from_request(body)
    except VideoValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    editor = Editor(preferences=PreferenceStore())
    if body.apply_preferences:
        editor.apply_preferences()
    editor.load_video(source)

    session_id = str(uuid4())
    editor_sessions[session_id] = editor
    logger.info(f"Editor session {session_id} opened on {source.name}")
    return SessionResponse(session_id=session_id, state=editor.to_dict())


@router.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str):
    editor = get_editor(session_id)
    return SessionResponse(session_id=session_id, state=editor.to_dict())


@router.delete("/sessions/{session_id}")
async def close_session(session_id: str):
    """Close a session, cancelling its export if one is running"""
    editor = get_editor(session_id)
    editor.export_session.cancel()
    editor_sessions.pop(session_id, None)
    export_pipelines.pop(session_id, None)
    return {"success": True}


# ============================================================================
# Overlays
# ============================================================================

@router.post("/sessions/{session_id}/overlays", response_model=OverlayResponse)
async def add_overlay(session_id: str, body: OverlayCreate):
    editor = get_editor(session_id)
    overlay_id = editor.overlays.add(body.to_patch())
    return OverlayResponse(overlay_id=overlay_id, state=editor.to_dict())


@router.patch("/sessions/{session_id}/overlays/{overlay_id}", response_model=OverlayResponse)
async def update_overlay(session_id: str, overlay_id: str, body: OverlayUpdate):
    """One request is one undo step"""
    editor = get_editor(session_id)
    _require_overlay(editor, overlay_id)
    with editor.history.checkpoint():
        editor.overlays.update(overlay_id, body.to_patch())
    return OverlayResponse(overlay_id=overlay_id, state=editor.to_dict())


@router.delete("/sessions/{session_id}/overlays/{overlay_id}", response_model=OverlayResponse)
async def remove_overlay(session_id: str, overlay_id: str):
    editor = get_editor(session_id)
    _require_overlay(editor, overlay_id)
    editor.overlays.remove(overlay_id)
    return OverlayResponse(state=editor.to_dict())


@router.delete("/sessions/{session_id}/overlays", response_model=OverlayResponse)
async def clear_overlays(session_id: str):
    editor = get_editor(session_id)
    editor.overlays.clear()
    return OverlayResponse(state=editor.to_dict())


@router.post("/sessions/{session_id}/overlays/{overlay_id}/duplicate", response_model=OverlayResponse)
async def duplicate_overlay(session_id: str, overlay_id: str):
    editor = get_editor(session_id)
    new_id = editor.overlays.duplicate(overlay_id)
    if new_id is None:
        raise HTTPException(status_code=404, detail="Overlay not found")
    return OverlayResponse(overlay_id=new_id, state=editor.to_dict())


@router.post("/sessions/{session_id}/overlays/reorder", response_model=OverlayResponse)
async def reorder_overlays(session_id: str, body: OverlayReorder):
    editor = get_editor(session_id)
    count = len(editor.overlays)
    if not (0 <= body.from_index < count and 0 <= body.to_index < count):
        raise HTTPException(status_code=400, detail="Overlay index out of range")
    editor.overlays.reorder(body.from_index, body.to_index)
    return OverlayResponse(state=editor.to_dict())


@router.post("/sessions/{session_id}/select", response_model=OverlayResponse)
async def select_overlay(session_id: str, body: SelectRequest):
    editor = get_editor(session_id)
    if body.overlay_id is not None:
        _require_overlay(editor, body.overlay_id)
    editor.overlays.select(body.overlay_id)
    return OverlayResponse(overlay_id=editor.state.selected_overlay_id, state=editor.to_dict())


# ============================================================================
# Timeline and playback
# ============================================================================

@router.put("/sessions/{session_id}/trim", response_model=SessionResponse)
async def set_trim(session_id: str, body: TrimRequest):
    editor = get_editor(session_id)
    editor.set_trim(body.start, body.end)
    return SessionResponse(session_id=session_id, state=editor.to_dict())


@router.post("/sessions/{session_id}/seek", response_model=SessionResponse)
async def seek(session_id: str, body: SeekRequest):
    editor = get_editor(session_id)
    editor.seek(body.time)
    return SessionResponse(session_id=session_id, state=editor.to_dict())


@router.patch("/sessions/{session_id}/playback", response_model=SessionResponse)
async def update_playback(session_id: str, body: PlaybackUpdate):
    editor = get_editor(session_id)
    if body.is_playing is not None:
        if body.is_playing:
            editor.play()
        else:
            editor.pause()
    if body.volume is not None:
        editor.set_volume(body.volume)
    if body.is_muted is not None:
        editor.state.is_muted = body.is_muted
    if body.playback_rate is not None:
        editor.set_playback_rate(body.playback_rate)
    return SessionResponse(session_id=session_id, state=editor.to_dict())


@router.get("/sessions/{session_id}/frame")
async def get_frame(
    session_id: str,
    time: float = 0,
    width: int = Query(default=320, ge=16, le=1920),
):
    """Get a JPEG still of the clip; the time is clamped into the trim window"""
    editor = get_editor(session_id)
    video = editor.state.video
    if video is None or not video.path or not Path(video.path).is_file():
        raise HTTPException(status_code=400, detail="Session has no video file")

    frame_time = clamp_to_trim(time, editor.state.trim)
    frame_dir = Path(settings.TEMP_DIR)
    frame_dir.mkdir(parents=True, exist_ok=True)
    frame_path = frame_dir / f"frame_{video.id}_{int(frame_time * 1000)}_{width}.jpg"

    if not frame_path.exists():
        if not FFmpegUtils.extract_frame(video.path, frame_time, str(frame_path), width):
            raise HTTPException(status_code=500, detail="Failed to extract frame")

    return FileResponse(frame_path, media_type="image/jpeg")


# ============================================================================
# Output frame and export settings
# ============================================================================

@router.put("/sessions/{session_id}/aspect-ratio", response_model=SessionResponse)
async def set_aspect_ratio(session_id: str, body: AspectRatioRequest):
    editor = get_editor(session_id)
    if body.aspect_ratio == "custom" and (body.custom_width or body.custom_height):
        editor.set_custom_dimensions(
            body.custom_width or editor.state.custom_width,
            body.custom_height or editor.state.custom_height,
        )
    else:
        editor.set_aspect_ratio(body.aspect_ratio)
    return SessionResponse(session_id=session_id, state=editor.to_dict())


@router.patch("/sessions/{session_id}/export-settings", response_model=SessionResponse)
async def update_export_settings(session_id: str, body: ExportSettingsUpdate):
    editor = get_editor(session_id)
    editor.update_export_settings(body.model_dump(exclude_none=True))
    return SessionResponse(session_id=session_id, state=editor.to_dict())


@router.post("/sessions/{session_id}/preferences")
async def save_preferences(session_id: str):
    """Persist this session's aspect ratio, export settings, volume and playback rate"""
    editor = get_editor(session_id)
    if not editor.save_preferences():
        raise HTTPException(status_code=500, detail="Failed to save preferences")
    return {"success": True}


# ============================================================================
# History
# ============================================================================

@router.post("/sessions/{session_id}/undo", response_model=HistoryResponse)
async def undo(session_id: str):
    editor = get_editor(session_id)
    applied = editor.undo()
    return HistoryResponse(applied=applied, state=editor.to_dict())


@router.post("/sessions/{session_id}/redo", response_model=HistoryResponse)
async def redo(session_id: str):
    editor = get_editor(session_id)
    applied = editor.redo()
    return HistoryResponse(applied=applied, state=editor.to_dict())
