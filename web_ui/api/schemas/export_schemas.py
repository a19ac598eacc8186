"""Export-related API schemas"""

from typing import Optional, Literal
from pydantic import BaseModel


class ExportRequest(BaseModel):
    """Start an export of a session"""
    output_path: Optional[str] = None


class ExportProgressResponse(BaseModel):
    """Export progress snapshot"""
    status: Literal["idle", "preparing", "encoding", "complete", "error"]
    progress: float  # 0-100
    message: str
    estimated_seconds_remaining: Optional[float] = None
    eta_formatted: Optional[str] = None  # Human-readable ETA (e.g., "2m 30s")
    output_path: Optional[str] = None


class ExportPlanResponse(BaseModel):
    """Compiled export plan, as the encoder will receive it"""
    trim_start: float
    trim_end: float
    duration: float
    width: int
    height: int
    fps: int
    quality: str
    format: str
    video_bitrate: str
    audio_bitrate: str
    crf: int
    video_codec: str
    audio_codec: str
    filter_expression: str
    overlay_count: int
    estimated_bytes: int
