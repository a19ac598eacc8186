"""
Overlay Registry - ordered collection of text overlays for one editor

Insertion order is z-order: later overlays draw on top of earlier ones.

Mutations come in two kinds:
- discrete (add, remove, duplicate, clear, reorder) record a history
  snapshot before they change anything
- continuous (update) never touch history; the caller wraps a finished
  gesture in SnapshotStore.checkpoint() to get a single undo step
"""

import copy
from typing import Iterator, List, Optional, Set
from uuid import uuid4

from config import settings
from models.editor_state import EditorState
from models.overlay import TextOverlay
from utils.logger import logger
from .history import SnapshotStore


# Duplicates are offset by this many percent and kept this far from the far edge
DUPLICATE_OFFSET = 20.0
MAX_DRAG_POSITION = 90.0
COPY_SUFFIX = " (copy)"


class OverlayRegistry:
    """CRUD, selection and time queries over EditorState.overlays"""

    def __init__(self, state: EditorState, history: SnapshotStore):
        self.state = state
        self.history = history
        self._issued_ids: Set[str] = set()

    def __iter__(self) -> Iterator[TextOverlay]:
        return iter(self.state.overlays)

    def __len__(self) -> int:
        return len(self.state.overlays)

    def __contains__(self, overlay_id: str) -> bool:
        return self.get(overlay_id) is not None

    @property
    def ids(self) -> List[str]:
        return [o.id for o in self.state.overlays]

    def get(self, overlay_id: Optional[str]) -> Optional[TextOverlay]:
        if overlay_id is None:
            return None
        for overlay in self.state.overlays:
            if overlay.id == overlay_id:
                return overlay
        return None

    def _new_id(self) -> str:
        overlay_id = str(uuid4())
        # Ids restored by undo stay reserved, so this also covers them
        if overlay_id in self._issued_ids or overlay_id in self:
            raise RuntimeError(f"Overlay id collision: {overlay_id}")
        self._issued_ids.add(overlay_id)
        return overlay_id

    def _default_window(self) -> tuple:
        trim = self.state.trim
        start = trim.start
        end = min(trim.start + settings.DEFAULT_OVERLAY_DURATION, trim.end, self.state.duration)
        return start, end

    def add(self, partial: Optional[dict] = None) -> str:
        """
        Create an overlay from defaults merged with partial and select it.

        Without explicit times the overlay covers the first five seconds
        of the trim window (less if the window is shorter).

        Returns:
            The new overlay id
        """
        partial = dict(partial or {})
        self.history.record()

        overlay = TextOverlay(id=self._new_id())
        start, end = self._default_window()
        overlay.start_time = start
        overlay.end_time = end
        overlay.apply_patch(partial)
        overlay.normalize(self.state.duration or None)

        self.state.overlays.append(overlay)
        self.select(overlay.id)
        logger.debug(f"Overlay added: {overlay}")
        return overlay.id

    def update(self, overlay_id: str, patch: dict) -> None:
        """Shallow-merge patch into an overlay. Unknown ids are ignored."""
        overlay = self.get(overlay_id)
        if overlay is None:
            return
        overlay.apply_patch(patch)
        overlay.normalize(self.state.duration or None)

    def remove(self, overlay_id: str) -> None:
        """Delete an overlay, dropping the selection if it pointed at it"""
        overlay = self.get(overlay_id)
        if overlay is None:
            return
        self.history.record()
        self.state.overlays = [o for o in self.state.overlays if o.id != overlay_id]
        if self.state.selected_overlay_id == overlay_id:
            self.state.selected_overlay_id = None
        logger.debug(f"Overlay removed: {overlay_id}")

    def duplicate(self, overlay_id: str) -> Optional[str]:
        """
        Copy an overlay under a new id, shifted down-right and selected.

        The source overlay is left untouched.

        Returns:
            The new id, or None if overlay_id does not exist
        """
        source = self.get(overlay_id)
        if source is None:
            return None
        self.history.record()

        duplicated = copy.deepcopy(source)
        duplicated.id = self._new_id()
        duplicated.x = min(source.x + DUPLICATE_OFFSET, MAX_DRAG_POSITION)
        duplicated.y = min(source.y + DUPLICATE_OFFSET, MAX_DRAG_POSITION)
        duplicated.text = f"{source.text}{COPY_SUFFIX}"

        self.state.overlays.append(duplicated)
        self.select(duplicated.id)
        return duplicated.id

    def clear(self) -> None:
        """Remove every overlay"""
        if not self.state.overlays:
            return
        self.history.record()
        self.state.overlays = []
        self.state.selected_overlay_id = None

    def reorder(self, from_index: int, to_index: int) -> None:
        """Move an overlay to another z-order position"""
        overlays = self.state.overlays
        if not (0 <= from_index < len(overlays)) or from_index == to_index:
            return
        to_index = max(0, min(len(overlays) - 1, to_index))
        self.history.record()
        moved = overlays.pop(from_index)
        overlays.insert(to_index, moved)

    def select(self, overlay_id: Optional[str]) -> None:
        """Point the selection at an overlay (or nothing) and project is_selected"""
        if overlay_id is not None and self.get(overlay_id) is None:
            overlay_id = None
        self.state.selected_overlay_id = overlay_id
        for overlay in self.state.overlays:
            overlay.is_selected = overlay.id == overlay_id

    def visible_at(self, time: float) -> List[TextOverlay]:
        """Overlays whose window contains time, in draw order"""
        return [o for o in self.state.overlays if o.is_visible_at(time)]

    def clamp_to_duration(self, duration: float) -> None:
        """Keep every overlay window inside a (new) clip duration"""
        for overlay in self.state.overlays:
            overlay.end_time = min(overlay.end_time, duration)
            overlay.normalize(duration)
