"""Text overlay model - timed, positioned text drawn over the video"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Optional
from uuid import uuid4

from config import settings
from .time_range import TimeRange, _finite, clamp_time, MIN_TRIM_WINDOW


class TextAlign(str, Enum):
    """Horizontal alignment of overlay text inside its box"""
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


# Position is stored in percent of the canvas, so an overlay keeps its
# placement when the same edit is rendered at a different resolution.
POSITION_MIN = 0.0
POSITION_MAX = 100.0


@dataclass
class TextOverlay:
    """
    A text element drawn over the video during its visibility window.

    Geometry:
    - x, y: origin in percent of the canvas (0-100)
    - width, height: box size in pixels; 0 means "derive from the text"

    Timing:
    - start_time / end_time: absolute clip time, end_time > start_time

    is_selected is a rendering projection of the editor selection and is
    not part of the overlay's identity.
    """
    id: str = field(default_factory=lambda: str(uuid4()))
    text: str = "Your text here"
    x: float = 50.0
    y: float = 50.0
    width: float = 300.0
    height: float = 60.0
    font_size: float = 32.0
    font_family: str = "Inter"
    font_weight: str = "bold"
    color: str = "#ffffff"
    background_color: str = "transparent"
    opacity: float = 1.0
    text_align: TextAlign = TextAlign.CENTER
    start_time: float = 0.0
    end_time: float = 5.0
    is_selected: bool = False

    @property
    def window(self) -> TimeRange:
        return TimeRange(self.start_time, self.end_time)

    @property
    def has_background(self) -> bool:
        return bool(self.background_color) and self.background_color != "transparent"

    def is_visible_at(self, time: float) -> bool:
        """Visibility window is inclusive on both ends"""
        return self.start_time <= time <= self.end_time

    def apply_patch(self, patch: dict) -> None:
        """Shallow-merge known fields from patch; identity and selection are not patchable"""
        for key, value in patch.items():
            if key in ("id", "is_selected") or key not in OVERLAY_FIELDS:
                continue
            if key == "text_align":
                value = TextAlign(value)
            setattr(self, key, value)

    def normalize(self, duration: Optional[float] = None) -> None:
        """
        Clamp every field into its legal range.

        With a clip duration the visibility window is also kept inside
        the clip and at least MIN_TRIM_WINDOW long.
        """
        self.x = clamp_time(self.x, POSITION_MIN, POSITION_MAX)
        self.y = clamp_time(self.y, POSITION_MIN, POSITION_MAX)
        self.width = max(0.0, _finite(self.width, 0.0))
        self.height = max(0.0, _finite(self.height, 0.0))
        self.font_size = max(1.0, _finite(self.font_size, 1.0))
        self.opacity = clamp_time(self.opacity, 0.0, 1.0)
        self.text = "" if self.text is None else str(self.text)

        # NaN or infinite times fall back to a default-length window from the start
        start = max(0.0, _finite(self.start_time, 0.0))
        end = _finite(self.end_time, start + settings.DEFAULT_OVERLAY_DURATION)
        if duration is not None and duration > 0:
            start = min(start, duration)
            end = min(end, duration)
        if end <= start:
            end = start + MIN_TRIM_WINDOW
            if duration is not None and duration > 0 and end > duration:
                end = duration
                start = max(0.0, duration - MIN_TRIM_WINDOW)
        self.start_time = start
        self.end_time = end

    def to_dict(self) -> dict:
        """Serialize to dictionary"""
        return {
            "id": self.id,
            "text": self.text,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "font_size": self.font_size,
            "font_family": self.font_family,
            "font_weight": self.font_weight,
            "color": self.color,
            "background_color": self.background_color,
            "opacity": self.opacity,
            "text_align": self.text_align.value,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "is_selected": self.is_selected,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'TextOverlay':
        """Deserialize from dictionary"""
        return cls(
            id=data.get("id", str(uuid4())),
            text=data.get("text", "Your text here"),
            x=data.get("x", 50.0),
            y=data.get("y", 50.0),
            width=data.get("width", 300.0),
            height=data.get("height", 60.0),
            font_size=data.get("font_size", 32.0),
            font_family=data.get("font_family", "Inter"),
            font_weight=data.get("font_weight", "bold"),
            color=data.get("color", "#ffffff"),
            background_color=data.get("background_color", "transparent"),
            opacity=data.get("opacity", 1.0),
            text_align=TextAlign(data.get("text_align", "center")),
            start_time=data.get("start_time", 0.0),
            end_time=data.get("end_time", 5.0),
            is_selected=data.get("is_selected", False),
        )

    def __str__(self) -> str:
        return f"TextOverlay({self.text!r}, {self.start_time}s-{self.end_time}s, at {self.x}%,{self.y}%)"


OVERLAY_FIELDS = frozenset(f.name for f in fields(TextOverlay))
