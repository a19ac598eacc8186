"""Data models for the editor"""

from .time_range import TimeRange
from .overlay import TextOverlay, TextAlign
from .video import VideoSource
from .editor_state import (
    EditorState,
    AspectRatioPreset,
    AspectRatio,
    ASPECT_RATIOS,
    ExportSettings,
    ExportQuality,
    ExportFormat,
)

__all__ = [
    "TimeRange",
    "TextOverlay",
    "TextAlign",
    "VideoSource",
    "EditorState",
    "AspectRatioPreset",
    "AspectRatio",
    "ASPECT_RATIOS",
    "ExportSettings",
    "ExportQuality",
    "ExportFormat",
]
