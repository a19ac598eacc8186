"""
Editor - one editing session over one clip

The Editor owns an EditorState and wires the overlay registry, history,
timeline controller and export session around it. Editors are plain
objects: create as many as needed, nothing is shared between them.
"""

from typing import Optional

from models.editor_state import (
    AspectRatioPreset,
    EditorState,
    ExportFormat,
    ExportQuality,
    ExportSettings,
)
from models.time_range import TimeRange, advance_playhead, clamp_time, seek, set_trim
from models.video import VideoSource
from utils.logger import logger
from .export_compiler import ExportPlan, compile_export
from .export_session import ExportSession
from .history import SnapshotStore
from .overlay_registry import OverlayRegistry
from .preferences import EditorPreferences, PreferenceStore
from .timeline_controller import TimelineController


MIN_PLAYBACK_RATE = 0.25
MAX_PLAYBACK_RATE = 2.0
MIN_CUSTOM_DIMENSION = 2
MAX_CUSTOM_DIMENSION = 7680


class Editor:
    """
    Facade over a single editing session.

    Attributes:
        state: The edit state; read it freely, mutate it through the editor
        overlays: OverlayRegistry for overlay CRUD and selection
        history: Undo/redo snapshots
        timeline: Pointer and keyboard gesture handling
        export_session: Export lifecycle and progress
    """

    def __init__(self, preferences: Optional[PreferenceStore] = None, history_capacity: Optional[int] = None):
        self.state = EditorState()
        if history_capacity:
            self.history = SnapshotStore(self.state, capacity=history_capacity)
        else:
            self.history = SnapshotStore(self.state)
        self.overlays = OverlayRegistry(self.state, self.history)
        self.timeline = TimelineController(self.state, self.history, self.overlays)
        self.export_session = ExportSession()
        self.preferences = preferences

    @property
    def has_video(self) -> bool:
        return self.state.video is not None

    # ------------------------------------------------------------------
    # Video
    # ------------------------------------------------------------------

    def load_video(self, source: VideoSource) -> None:
        """
        Make source the edited clip.

        The trim window resets to the whole clip and the playhead to 0.
        Existing overlays are kept, with their windows clamped to the new
        duration. History from the previous clip is dropped.
        """
        state = self.state
        state.video = source
        state.duration = source.duration
        state.trim = set_trim(TimeRange(0.0, source.duration), source.duration)
        state.current_time = 0.0
        state.is_playing = False
        self.overlays.clamp_to_duration(source.duration)
        self.history.clear()
        logger.info(f"Video loaded: {source}")

    def unload_video(self) -> None:
        state = self.state
        state.video = None
        state.duration = 0.0
        state.trim = TimeRange(0.0, 0.0)
        state.current_time = 0.0
        state.is_playing = False
        logger.info("Video unloaded")

    # ------------------------------------------------------------------
    # Time
    # ------------------------------------------------------------------

    def set_trim(self, start: float, end: float) -> TimeRange:
        """Set the trim window as one discrete edit (recorded only if it changes)"""
        new_trim = set_trim(TimeRange(start, end), self.state.duration)
        if new_trim != self.state.trim:
            self.history.record()
            self.state.trim = new_trim
            self.state.current_time = seek(self.state.current_time, new_trim)
        return self.state.trim

    def seek(self, time: float) -> float:
        self.state.current_time = seek(time, self.state.trim)
        return self.state.current_time

    def seek_relative(self, seconds: float) -> float:
        return self.seek(self.state.current_time + seconds)

    def play(self) -> None:
        if self.has_video:
            self.state.is_playing = True

    def pause(self) -> None:
        self.state.is_playing = False

    def toggle_playback(self) -> bool:
        if self.state.is_playing:
            self.pause()
        else:
            self.play()
        return self.state.is_playing

    def tick(self, delta: float) -> float:
        """Advance playback by delta wall-clock seconds, looping inside the trim window"""
        if self.state.is_playing:
            self.state.current_time = advance_playhead(
                self.state.current_time,
                delta * self.state.playback_rate,
                self.state.trim,
            )
        return self.state.current_time

    def set_volume(self, volume: float) -> None:
        """Volume in [0, 1]; zero also mutes"""
        volume = clamp_time(volume, 0.0, 1.0)
        self.state.volume = volume
        self.state.is_muted = volume == 0

    def toggle_mute(self) -> bool:
        self.state.is_muted = not self.state.is_muted
        return self.state.is_muted

    def set_playback_rate(self, rate: float) -> None:
        self.state.playback_rate = clamp_time(rate, MIN_PLAYBACK_RATE, MAX_PLAYBACK_RATE)

    # ------------------------------------------------------------------
    # Output frame and export settings
    # ------------------------------------------------------------------

    def _sync_export_dimensions(self) -> None:
        width, height = self.state.output_dimensions()
        export_settings = self.state.export_settings
        export_settings.aspect_ratio = self.state.aspect_ratio
        export_settings.width = width
        export_settings.height = height

    def set_aspect_ratio(self, preset: AspectRatioPreset) -> None:
        """Switch the output preset; a discrete, undoable edit"""
        preset = AspectRatioPreset(preset)
        if preset != self.state.aspect_ratio:
            self.history.record()
            self.state.aspect_ratio = preset
        self._sync_export_dimensions()

    def set_custom_dimensions(self, width: int, height: int) -> None:
        """Set the custom output size and switch to the custom preset"""
        self.state.custom_width = int(clamp_time(width, MIN_CUSTOM_DIMENSION, MAX_CUSTOM_DIMENSION))
        self.state.custom_height = int(clamp_time(height, MIN_CUSTOM_DIMENSION, MAX_CUSTOM_DIMENSION))
        if self.state.aspect_ratio != AspectRatioPreset.CUSTOM:
            self.history.record()
            self.state.aspect_ratio = AspectRatioPreset.CUSTOM
        self._sync_export_dimensions()

    def update_export_settings(self, patch: dict) -> ExportSettings:
        """
        Merge export settings.

        Keys: quality, format, fps, aspect_ratio, width, height. The frame
        keys go through set_aspect_ratio / set_custom_dimensions so the
        preset and the export size never disagree.
        """
        export_settings = self.state.export_settings
        if patch.get("quality") is not None:
            export_settings.quality = ExportQuality(patch["quality"])
        if patch.get("format") is not None:
            export_settings.format = ExportFormat(patch["format"])
        if patch.get("fps") is not None:
            export_settings.fps = max(1, int(patch["fps"]))
        if patch.get("aspect_ratio") is not None:
            self.set_aspect_ratio(patch["aspect_ratio"])
        if patch.get("width") is not None or patch.get("height") is not None:
            self.set_custom_dimensions(
                patch.get("width") or self.state.custom_width,
                patch.get("height") or self.state.custom_height,
            )
        return export_settings

    def compile_export(self, export_settings: Optional[ExportSettings] = None) -> ExportPlan:
        return compile_export(self.state, export_settings)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def undo(self) -> bool:
        return self.history.undo()

    def redo(self) -> bool:
        return self.history.redo()

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    def current_preferences(self) -> EditorPreferences:
        state = self.state
        return EditorPreferences(
            aspect_ratio=state.aspect_ratio,
            export_quality=state.export_settings.quality,
            export_format=state.export_settings.format,
            export_fps=state.export_settings.fps,
            volume=state.volume,
            playback_rate=state.playback_rate,
        )

    def apply_preferences(self, preferences: Optional[EditorPreferences] = None) -> None:
        """Apply stored preferences (loaded from the store when not given); not undoable"""
        if preferences is None:
            if self.preferences is None:
                return
            preferences = self.preferences.load()
        state = self.state
        state.aspect_ratio = preferences.aspect_ratio
        state.export_settings.quality = preferences.export_quality
        state.export_settings.format = preferences.export_format
        state.export_settings.fps = preferences.export_fps
        self._sync_export_dimensions()
        self.set_volume(preferences.volume)
        self.set_playback_rate(preferences.playback_rate)

    def save_preferences(self) -> bool:
        if self.preferences is None:
            return False
        return self.preferences.save(self.current_preferences())

    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Back to a fresh editor; a running export is invalidated"""
        self.export_session.reset()
        self.state = EditorState()
        self.history = SnapshotStore(self.state, capacity=self.history.capacity)
        self.overlays = OverlayRegistry(self.state, self.history)
        self.timeline = TimelineController(self.state, self.history, self.overlays)
        logger.info("Editor reset")

    def to_dict(self) -> dict:
        data = self.state.to_dict()
        data["can_undo"] = self.history.can_undo
        data["can_redo"] = self.history.can_redo
        data["export"] = self.export_session.progress.to_dict()
        data["timeline"] = {
            "markers": self.timeline.ruler_markers(),
            "handles": self.timeline.handle_positions(),
        }
        return data
