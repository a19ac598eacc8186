"""
Timeline Interaction Controller

Turns pointer and keyboard input into time-domain and overlay mutations.

Drag gestures are a small state machine:

    IDLE --pointer_down--> DRAGGING_* --pointer_move*--> ... --pointer_up--> IDLE

Pointer-down pauses playback. While dragging, every pointer-move is a
continuous mutation with no history entry; the whole gesture becomes one
undo step on pointer-up (and only if it changed anything). Keyboard nudges
are discrete already, so each press records its own step.
"""

from enum import Enum
from typing import List, Optional

from models.editor_state import EditorState
from models.time_range import clamp_time, format_time, marker_interval, seek, set_trim_start, set_trim_end
from utils.logger import logger
from .geometry import GeometryResolver, SurfaceSize
from .history import Snapshot, SnapshotStore
from .overlay_registry import OverlayRegistry, MAX_DRAG_POSITION


NUDGE_STEP = 1.0
NUDGE_STEP_LARGE = 10.0
SEEK_STEP = 5.0


class DragMode(str, Enum):
    """Interaction states"""
    IDLE = "idle"
    DRAGGING_PLAYHEAD = "dragging_playhead"
    DRAGGING_TRIM_START = "dragging_trim_start"
    DRAGGING_TRIM_END = "dragging_trim_end"
    DRAGGING_OVERLAY = "dragging_overlay"


class TimelineHandle(str, Enum):
    """Grabbable parts of the timeline track"""
    PLAYHEAD = "playhead"
    TRIM_START = "trim_start"
    TRIM_END = "trim_end"


_HANDLE_MODES = {
    TimelineHandle.PLAYHEAD: DragMode.DRAGGING_PLAYHEAD,
    TimelineHandle.TRIM_START: DragMode.DRAGGING_TRIM_START,
    TimelineHandle.TRIM_END: DragMode.DRAGGING_TRIM_END,
}

_ARROW_KEYS = {
    "ArrowLeft": (-1, 0),
    "ArrowRight": (1, 0),
    "ArrowUp": (0, -1),
    "ArrowDown": (0, 1),
}


class TimelineController:
    """
    Gesture handling for one editor.

    Track positions are given in pixels relative to the left edge of the
    timeline track together with the track width; render-surface positions
    are pixels relative to the surface's top-left corner together with the
    surface size.
    """

    def __init__(self, state: EditorState, history: SnapshotStore, registry: OverlayRegistry):
        self.state = state
        self.history = history
        self.registry = registry
        self.mode = DragMode.IDLE
        self._gesture_start: Optional[Snapshot] = None
        self._drag_overlay_id: Optional[str] = None
        self._drag_offset = (0.0, 0.0)
        self._text_edit_start: Optional[Snapshot] = None

    @property
    def is_dragging(self) -> bool:
        return self.mode != DragMode.IDLE

    # ------------------------------------------------------------------
    # Track coordinates
    # ------------------------------------------------------------------

    def x_to_time(self, x: float, track_width: float) -> float:
        """Track x position -> percent of track width -> absolute time"""
        if track_width <= 0 or self.state.duration <= 0:
            return 0.0
        percent = clamp_time(x / track_width * 100, 0.0, 100.0)
        return percent / 100 * self.state.duration

    def time_to_percent(self, time: float) -> float:
        if self.state.duration <= 0:
            return 0.0
        return time / self.state.duration * 100

    def ruler_markers(self) -> List[dict]:
        """Labelled ruler ticks across the whole clip, positioned in percent of the track"""
        duration = self.state.duration
        if duration <= 0:
            return []
        step = marker_interval(duration)
        return [
            {"time": float(t), "percent": self.time_to_percent(t), "label": format_time(t)}
            for t in range(0, int(duration) + 1, step)
        ]

    def handle_positions(self) -> dict:
        """Playhead and trim handles in percent of the track width"""
        return {
            "playhead": self.time_to_percent(self.state.current_time),
            "trim_start": self.time_to_percent(self.state.trim.start),
            "trim_end": self.time_to_percent(self.state.trim.end),
        }

    # ------------------------------------------------------------------
    # Timeline drags
    # ------------------------------------------------------------------

    def pointer_down(self, handle: TimelineHandle) -> None:
        """Grab a timeline handle"""
        if self.is_dragging:
            return
        self.mode = _HANDLE_MODES[TimelineHandle(handle)]
        self.state.is_playing = False
        if self.mode in (DragMode.DRAGGING_TRIM_START, DragMode.DRAGGING_TRIM_END):
            self._gesture_start = self.history.capture()
        logger.debug(f"Timeline drag started: {self.mode.value}")

    def pointer_move(self, x: float, track_width: float) -> None:
        """Apply a pointer position on the track to the active timeline drag"""
        if self.mode not in (
            DragMode.DRAGGING_PLAYHEAD,
            DragMode.DRAGGING_TRIM_START,
            DragMode.DRAGGING_TRIM_END,
        ):
            return

        state = self.state
        time = self.x_to_time(x, track_width)

        if self.mode == DragMode.DRAGGING_PLAYHEAD:
            state.current_time = seek(time, state.trim)
        elif self.mode == DragMode.DRAGGING_TRIM_START:
            state.trim = set_trim_start(time, state.trim)
            if state.current_time < state.trim.start:
                state.current_time = state.trim.start
        else:
            state.trim = set_trim_end(time, state.trim, state.duration)
            if state.current_time > state.trim.end:
                state.current_time = state.trim.end

    def pointer_up(self) -> None:
        """Release whatever is being dragged and commit the gesture"""
        if self.mode == DragMode.IDLE:
            return
        if self._gesture_start is not None:
            committed = self.history.commit_if_changed(self._gesture_start)
            logger.debug(f"Drag {self.mode.value} ended (recorded={committed})")
        self.mode = DragMode.IDLE
        self._gesture_start = None
        self._drag_overlay_id = None
        self._drag_offset = (0.0, 0.0)

    def click_track(self, x: float, track_width: float) -> None:
        """Click on the bare track: jump the playhead there and pause"""
        if self.is_dragging:
            return
        self.state.current_time = seek(self.x_to_time(x, track_width), self.state.trim)
        self.state.is_playing = False

    # ------------------------------------------------------------------
    # Overlay drags on the render surface
    # ------------------------------------------------------------------

    def overlay_pointer_down(self, px: float, py: float, surface: SurfaceSize, resolver: Optional[GeometryResolver] = None) -> Optional[str]:
        """
        Press on the render surface.

        Selects and starts dragging the topmost overlay under the pointer,
        or clears the selection when nothing is hit.

        Returns:
            The id of the grabbed overlay, or None
        """
        if self.is_dragging:
            return None
        resolver = resolver or GeometryResolver(surface)
        visible = self.registry.visible_at(self.state.current_time)
        hit = resolver.hit_test(visible, px, py)
        if hit is None:
            self.registry.select(None)
            return None

        self.registry.select(hit.id)
        origin_x, origin_y = resolver.origin(hit)
        self._drag_offset = (px - origin_x, py - origin_y)
        self._drag_overlay_id = hit.id
        self._gesture_start = self.history.capture()
        self.mode = DragMode.DRAGGING_OVERLAY
        return hit.id

    def overlay_pointer_move(self, px: float, py: float, surface: SurfaceSize) -> None:
        """Move the grabbed overlay so it keeps its offset to the pointer"""
        if self.mode != DragMode.DRAGGING_OVERLAY or self._drag_overlay_id is None:
            return
        width, height = surface
        if width <= 0 or height <= 0:
            return
        offset_x, offset_y = self._drag_offset
        x_percent = clamp_time((px - offset_x) / width * 100, 0.0, MAX_DRAG_POSITION)
        y_percent = clamp_time((py - offset_y) / height * 100, 0.0, MAX_DRAG_POSITION)
        self.registry.update(self._drag_overlay_id, {"x": x_percent, "y": y_percent})

    # ------------------------------------------------------------------
    # Keyboard
    # ------------------------------------------------------------------

    def nudge(self, dx: int, dy: int, large: bool = False) -> bool:
        """Move the selected overlay by one step per axis unit; one undo step per call"""
        overlay = self.state.selected_overlay
        if overlay is None:
            return False
        step = NUDGE_STEP_LARGE if large else NUDGE_STEP
        new_x = clamp_time(overlay.x + dx * step, 0.0, MAX_DRAG_POSITION)
        new_y = clamp_time(overlay.y + dy * step, 0.0, MAX_DRAG_POSITION)
        if new_x == overlay.x and new_y == overlay.y:
            return True
        self.history.record()
        self.registry.update(overlay.id, {"x": new_x, "y": new_y})
        return True

    def seek_relative(self, seconds: float) -> None:
        self.state.current_time = seek(self.state.current_time + seconds, self.state.trim)

    def handle_key(self, key: str, shift: bool = False, ctrl: bool = False) -> bool:
        """
        Editor keyboard shortcuts.

        Returns:
            True if the key was handled
        """
        if ctrl:
            lowered = key.lower()
            if lowered == "z" and not shift:
                return self.history.undo()
            if lowered == "y" or (lowered == "z" and shift):
                return self.history.redo()
            return False

        if key in _ARROW_KEYS:
            dx, dy = _ARROW_KEYS[key]
            if self.state.selected_overlay is not None:
                return self.nudge(dx, dy, large=shift)
            if dx:
                self.seek_relative(dx * SEEK_STEP)
                return True
            return False

        if key == " ":
            self.state.is_playing = not self.state.is_playing
            return True
        if key == "m":
            self.state.is_muted = not self.state.is_muted
            return True
        if key in ("Delete", "Backspace"):
            if self.state.selected_overlay_id is None:
                return False
            self.registry.remove(self.state.selected_overlay_id)
            return True
        if key == "Escape":
            self.registry.select(None)
            return True
        return False

    # ------------------------------------------------------------------
    # Text editing
    # ------------------------------------------------------------------

    def begin_text_edit(self, overlay_id: str) -> bool:
        """Start a typing session on an overlay; keystrokes go through registry.update"""
        if self.registry.get(overlay_id) is None:
            return False
        self.registry.select(overlay_id)
        self._text_edit_start = self.history.capture()
        return True

    def end_text_edit(self) -> bool:
        """Close the typing session as a single undo step"""
        if self._text_edit_start is None:
            return False
        committed = self.history.commit_if_changed(self._text_edit_start)
        self._text_edit_start = None
        return committed
