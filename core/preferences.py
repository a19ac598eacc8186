"""Editor preferences - the small slice of editor state kept between sessions"""

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from config import settings
from models.editor_state import AspectRatioPreset, ExportFormat, ExportQuality
from utils.logger import logger


class EditorPreferences(BaseModel):
    """Persisted editor preferences"""
    aspect_ratio: AspectRatioPreset = Field(default=AspectRatioPreset.LANDSCAPE, description="Output aspect ratio preset")
    export_quality: ExportQuality = Field(default=ExportQuality.HIGH, description="Export quality tier")
    export_format: ExportFormat = Field(default=ExportFormat.MP4, description="Export container")
    export_fps: int = Field(default=30, ge=1, le=120, description="Export frame rate")
    volume: float = Field(default=1.0, ge=0.0, le=1.0, description="Playback volume")
    playback_rate: float = Field(default=1.0, ge=0.25, le=2.0, description="Playback speed")


class PreferenceStore:
    """
    JSON file holding EditorPreferences.

    A missing, unreadable or invalid file is never an error: load() falls
    back to the defaults and logs a warning.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or settings.PREFERENCES_FILE)

    def load(self) -> EditorPreferences:
        """Load preferences from file"""
        if not self.path.exists():
            return EditorPreferences()
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            preferences = EditorPreferences.model_validate(data)
            logger.debug(f"Loaded editor preferences from {self.path}")
            return preferences
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Failed to load editor preferences, using defaults: {e}")
            return EditorPreferences()

    def save(self, preferences: EditorPreferences) -> bool:
        """Save preferences to file"""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump(preferences.model_dump(mode='json'), f, indent=2)
            logger.debug(f"Saved editor preferences to {self.path}")
            return True
        except OSError as e:
            logger.error(f"Failed to save editor preferences: {e}")
            return False
