"""Editor state model - everything one editing session owns"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .overlay import TextOverlay
from .time_range import TimeRange
from .video import VideoSource


class AspectRatioPreset(str, Enum):
    """Output frame presets"""
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    SQUARE = "square"
    CUSTOM = "custom"


@dataclass(frozen=True)
class AspectRatio:
    """Display and sizing information for a preset"""
    id: AspectRatioPreset
    label: str
    width: int
    height: int
    ratio: str


# Custom carries 0x0 here; its real size comes from the editor's custom dimensions
ASPECT_RATIOS = {
    AspectRatioPreset.LANDSCAPE: AspectRatio(AspectRatioPreset.LANDSCAPE, "Landscape", 1920, 1080, "16:9"),
    AspectRatioPreset.PORTRAIT: AspectRatio(AspectRatioPreset.PORTRAIT, "Portrait", 1080, 1920, "9:16"),
    AspectRatioPreset.SQUARE: AspectRatio(AspectRatioPreset.SQUARE, "Square", 1080, 1080, "1:1"),
    AspectRatioPreset.CUSTOM: AspectRatio(AspectRatioPreset.CUSTOM, "Custom", 0, 0, "Custom"),
}


class ExportQuality(str, Enum):
    """Quality tiers, see export_compiler.QUALITY_SETTINGS"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    ULTRA = "ultra"


class ExportFormat(str, Enum):
    """Output containers"""
    MP4 = "mp4"
    WEBM = "webm"
    MOV = "mov"


@dataclass
class ExportSettings:
    """User-facing export configuration"""
    quality: ExportQuality = ExportQuality.HIGH
    format: ExportFormat = ExportFormat.MP4
    aspect_ratio: AspectRatioPreset = AspectRatioPreset.LANDSCAPE
    width: int = 1920
    height: int = 1080
    fps: int = 30

    def to_dict(self) -> dict:
        return {
            "quality": self.quality.value,
            "format": self.format.value,
            "aspect_ratio": self.aspect_ratio.value,
            "width": self.width,
            "height": self.height,
            "fps": self.fps,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ExportSettings':
        return cls(
            quality=ExportQuality(data.get("quality", "high")),
            format=ExportFormat(data.get("format", "mp4")),
            aspect_ratio=AspectRatioPreset(data.get("aspect_ratio", "landscape")),
            width=data.get("width", 1920),
            height=data.get("height", 1080),
            fps=data.get("fps", 30),
        )


@dataclass
class EditorState:
    """
    Aggregate edit state for a single clip.

    Owned by one Editor instance. The overlay registry and the timeline
    controller are the only writers; geometry resolution and export
    compilation only read it.
    """
    video: Optional[VideoSource] = None
    duration: float = 0.0
    current_time: float = 0.0
    trim: TimeRange = field(default_factory=lambda: TimeRange(0.0, 0.0))
    overlays: List[TextOverlay] = field(default_factory=list)
    selected_overlay_id: Optional[str] = None
    aspect_ratio: AspectRatioPreset = AspectRatioPreset.LANDSCAPE
    custom_width: int = 1920
    custom_height: int = 1080
    export_settings: ExportSettings = field(default_factory=ExportSettings)

    # Playback
    is_playing: bool = False
    playback_rate: float = 1.0
    volume: float = 1.0
    is_muted: bool = False

    @property
    def trim_start(self) -> float:
        return self.trim.start

    @property
    def trim_end(self) -> float:
        return self.trim.end

    @property
    def selected_overlay(self) -> Optional[TextOverlay]:
        if self.selected_overlay_id is None:
            return None
        for overlay in self.overlays:
            if overlay.id == self.selected_overlay_id:
                return overlay
        return None

    def output_dimensions(self, preset: Optional[AspectRatioPreset] = None) -> tuple:
        """(width, height) for a preset; custom resolves to the custom dimensions"""
        preset = preset or self.aspect_ratio
        if preset == AspectRatioPreset.CUSTOM:
            return self.custom_width, self.custom_height
        info = ASPECT_RATIOS[preset]
        return info.width, info.height

    def to_dict(self) -> dict:
        """Serialize to dictionary"""
        return {
            "video": self.video.to_dict() if self.video else None,
            "duration": self.duration,
            "current_time": self.current_time,
            "trim_start": self.trim.start,
            "trim_end": self.trim.end,
            "overlays": [o.to_dict() for o in self.overlays],
            "selected_overlay_id": self.selected_overlay_id,
            "aspect_ratio": self.aspect_ratio.value,
            "custom_width": self.custom_width,
            "custom_height": self.custom_height,
            "export_settings": self.export_settings.to_dict(),
            "is_playing": self.is_playing,
            "playback_rate": self.playback_rate,
            "volume": self.volume,
            "is_muted": self.is_muted,
        }
