"""Editor session API schemas"""

from typing import Optional, Literal
from pydantic import BaseModel, Field


class SessionCreate(BaseModel):
    """
    Open an editor session on a video.

    With only a path, the file is validated and probed with ffprobe.
    Without a path, the caller supplies the probed metadata.
    """
    path: Optional[str] = None
    name: Optional[str] = None
    mime_type: Optional[str] = None
    size_bytes: int = Field(default=0, ge=0)
    duration: Optional[float] = None
    width: Optional[int] = None
    height: Optional[int] = None
    fps: float = Field(default=30.0, gt=0)
    apply_preferences: bool = False


class OverlayFields(BaseModel):
    """Every editable overlay field, all optional"""
    text: Optional[str] = None
    x: Optional[float] = None
    y: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    font_size: Optional[float] = None
    font_family: Optional[str] = None
    font_weight: Optional[str] = None
    color: Optional[str] = None
    background_color: Optional[str] = None
    opacity: Optional[float] = None
    text_align: Optional[Literal["left", "center", "right"]] = None
    start_time: Optional[float] = None
    end_time: Optional[float] = None

    def to_patch(self) -> dict:
        return self.model_dump(exclude_none=True)


class OverlayCreate(OverlayFields):
    """New overlay; omitted fields take the editor defaults"""
    pass


class OverlayUpdate(OverlayFields):
    """Partial overlay update"""
    pass


class OverlayReorder(BaseModel):
    from_index: int
    to_index: int


class SelectRequest(BaseModel):
    overlay_id: Optional[str] = None


class TrimRequest(BaseModel):
    start: float
    end: float


class SeekRequest(BaseModel):
    time: float


class AspectRatioRequest(BaseModel):
    aspect_ratio: Literal["landscape", "portrait", "square", "custom"]
    custom_width: Optional[int] = Field(default=None, ge=2)
    custom_height: Optional[int] = Field(default=None, ge=2)


class ExportSettingsUpdate(BaseModel):
    """Partial export settings update"""
    quality: Optional[Literal["low", "medium", "high", "ultra"]] = None
    format: Optional[Literal["mp4", "webm", "mov"]] = None
    fps: Optional[int] = Field(default=None, ge=1, le=120)
    aspect_ratio: Optional[Literal["landscape", "portrait", "square", "custom"]] = None
    width: Optional[int] = Field(default=None, ge=2)
    height: Optional[int] = Field(default=None, ge=2)


class PlaybackUpdate(BaseModel):
    """Playback flags; omitted fields are left alone"""
    is_playing: Optional[bool] = None
    volume: Optional[float] = None
    is_muted: Optional[bool] = None
    playback_rate: Optional[float] = None


class SessionResponse(BaseModel):
    """A session id with the full editor state"""
    session_id: str
    state: dict


class OverlayResponse(BaseModel):
    """Result of an overlay mutation"""
    overlay_id: Optional[str] = None
    state: dict


class HistoryResponse(BaseModel):
    applied: bool
    state: dict
