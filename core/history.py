"""
Undo/Redo Snapshot Store

Linear edit history made of whole-state snapshots. Every discrete edit
records the state as it was *before* the edit, so undo always lands on
the pre-edit state. Continuous gestures (drags, typing) are coalesced by
checkpoint(): the pre-gesture state is pushed once when the gesture ends,
and only if the gesture actually changed something.

Snapshots are deep copies in both directions. Mutating live overlays
after a snapshot was taken never reaches the stored copy, and restoring
a snapshot never hands out the stored objects themselves.
"""

import copy
import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Deque, Optional, Tuple

from config import settings
from models.editor_state import EditorState, AspectRatioPreset
from models.overlay import TextOverlay
from models.time_range import TimeRange, clamp_time
from utils.logger import logger


@dataclass(frozen=True)
class Snapshot:
    """Immutable copy of the undoable part of the editor state"""
    overlays: Tuple[TextOverlay, ...]
    trim_start: float
    trim_end: float
    aspect_ratio: AspectRatioPreset
    timestamp: float

    def same_content(self, other: 'Snapshot') -> bool:
        """Equal in everything except the capture time"""
        return (
            self.trim_start == other.trim_start
            and self.trim_end == other.trim_end
            and self.aspect_ratio == other.aspect_ratio
            and [o.to_dict() for o in self.overlays] == [o.to_dict() for o in other.overlays]
        )


class SnapshotStore:
    """
    Two bounded stacks of snapshots over one EditorState.

    Overflow discards the oldest entry. Any newly recorded edit clears
    the redo stack, so redo is only possible directly after undo.
    """

    def __init__(self, state: EditorState, capacity: int = settings.MAX_HISTORY):
        self.state = state
        self.capacity = capacity
        self._undo: Deque[Snapshot] = deque(maxlen=capacity)
        self._redo: Deque[Snapshot] = deque(maxlen=capacity)

    @property
    def can_undo(self) -> bool:
        return len(self._undo) > 0

    @property
    def can_redo(self) -> bool:
        return len(self._redo) > 0

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    def capture(self) -> Snapshot:
        """Take a snapshot of the current state without recording it"""
        return Snapshot(
            overlays=tuple(copy.deepcopy(self.state.overlays)),
            trim_start=self.state.trim.start,
            trim_end=self.state.trim.end,
            aspect_ratio=self.state.aspect_ratio,
            timestamp=time.time(),
        )

    def record(self, snapshot: Optional[Snapshot] = None) -> None:
        """Push a snapshot (the current state by default) and invalidate redo"""
        self._undo.append(snapshot or self.capture())
        self._redo.clear()
        logger.debug(f"History recorded (undo depth {len(self._undo)})")

    def undo(self) -> bool:
        """Restore the previous snapshot. Returns False when there is nothing to undo."""
        if not self._undo:
            return False
        self._redo.append(self.capture())
        self._restore(self._undo.pop())
        return True

    def redo(self) -> bool:
        """Re-apply the most recently undone snapshot. Returns False when there is nothing to redo."""
        if not self._redo:
            return False
        self._undo.append(self.capture())
        self._restore(self._redo.pop())
        return True

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()

    @contextmanager
    def checkpoint(self):
        """
        Coalesce everything done inside the block into one history entry.

        Nothing is recorded if the block leaves the state unchanged or
        raises.
        """
        before = self.capture()
        yield before
        if not before.same_content(self.capture()):
            self.record(before)

    def commit_if_changed(self, before: Snapshot) -> bool:
        """Record a previously captured snapshot if the state has moved on since"""
        if before.same_content(self.capture()):
            return False
        self.record(before)
        return True

    def _restore(self, snapshot: Snapshot) -> None:
        state = self.state
        state.overlays = list(copy.deepcopy(snapshot.overlays))
        state.trim = TimeRange(snapshot.trim_start, snapshot.trim_end)
        state.aspect_ratio = snapshot.aspect_ratio

        # Selection is a projection of the overlays' is_selected flags
        selected = next((o.id for o in state.overlays if o.is_selected), None)
        state.selected_overlay_id = selected

        state.current_time = clamp_time(state.current_time, state.trim.start, state.trim.end)

        width, height = state.output_dimensions()
        state.export_settings.aspect_ratio = state.aspect_ratio
        state.export_settings.width = width
        state.export_settings.height = height
