"""Video source model - the single clip loaded into an editor"""

from dataclasses import dataclass, field
from typing import Optional
from uuid import uuid4


@dataclass
class VideoSource:
    """
    An accepted input clip together with its probed metadata.

    Instances are only created after the file passed validation
    (see backend.media_validation), so duration and dimensions are
    always positive.
    """
    name: str
    duration: float
    width: int
    height: int
    path: Optional[str] = None
    size_bytes: int = 0
    mime_type: str = "video/mp4"
    fps: float = 30.0
    id: str = field(default_factory=lambda: str(uuid4()))

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height if self.height else 0.0

    def to_dict(self) -> dict:
        """Serialize to dictionary"""
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "size_bytes": self.size_bytes,
            "mime_type": self.mime_type,
            "duration": self.duration,
            "width": self.width,
            "height": self.height,
            "fps": self.fps,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'VideoSource':
        """Deserialize from dictionary"""
        return cls(
            id=data.get("id", str(uuid4())),
            name=data.get("name", ""),
            path=data.get("path"),
            size_bytes=data.get("size_bytes", 0),
            mime_type=data.get("mime_type", "video/mp4"),
            duration=data.get("duration", 0.0),
            width=data.get("width", 0),
            height=data.get("height", 0),
            fps=data.get("fps", 30.0),
        )

    def __str__(self) -> str:
        return f"VideoSource({self.name}, {self.duration:.2f}s, {self.width}x{self.height})"
