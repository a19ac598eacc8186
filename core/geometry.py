"""
Coordinate/Geometry Resolver

Maps percent-space overlays onto a pixel surface. The surface size is
always passed in explicitly: the preview canvas and the export frame
use the same overlay coordinates at different resolutions.

Box model (matches the preview renderer):
- origin: (x/100 * W, y/100 * H)
- size: the overlay's own width/height when set, otherwise the measured
  text width plus padding and 1.5x the font size
- selection box: the box drawn 10px left of and 5px above the origin
"""

from dataclasses import dataclass
from typing import Callable, List, NamedTuple, Optional, Sequence

from models.overlay import TextOverlay, TextAlign


TEXT_PADDING = 20.0
LINE_HEIGHT_FACTOR = 1.5
# Interaction margin around an overlay box for pointer hit-testing
HIT_MARGIN_X = 10.0
HIT_MARGIN_Y = 5.0
HANDLE_SIZE = 8.0
# Rough average glyph advance, as a fraction of the font size
AVERAGE_GLYPH_WIDTH = 0.6

TextMeasure = Callable[[str, float, str, str], float]


class SurfaceSize(NamedTuple):
    """Pixel size of a render target (preview canvas or export frame)"""
    width: float
    height: float


@dataclass(frozen=True)
class PixelBox:
    """Axis-aligned rectangle in pixels"""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px <= self.right and self.y <= py <= self.bottom

    def expanded(self, dx: float, dy: float) -> 'PixelBox':
        return PixelBox(self.x - dx, self.y - dy, self.width + 2 * dx, self.height + 2 * dy)


def estimate_text_width(text: str, font_size: float, font_family: str = "", font_weight: str = "") -> float:
    """Default text measurement when no real font metrics are available"""
    return len(text) * font_size * AVERAGE_GLYPH_WIDTH


class GeometryResolver:
    """
    Percent-space to pixel-space conversions for one surface.

    Args:
        surface: Target size in pixels
        measure_text: Callable(text, font_size, family, weight) -> width in px;
            the renderer injects real font metrics here
        scale: Multiplier for pixel sizes (box size, font size); the export
            uses output_width / 1920 so sizes track the output resolution
    """

    def __init__(
        self,
        surface: SurfaceSize,
        measure_text: Optional[TextMeasure] = None,
        scale: float = 1.0,
    ):
        self.surface = SurfaceSize(*surface)
        self.measure_text = measure_text or estimate_text_width
        self.scale = scale

    def origin(self, overlay: TextOverlay) -> tuple:
        return (
            overlay.x / 100 * self.surface.width,
            overlay.y / 100 * self.surface.height,
        )

    def font_size(self, overlay: TextOverlay) -> float:
        return overlay.font_size * self.scale

    def box_size(self, overlay: TextOverlay) -> tuple:
        font_size = self.font_size(overlay)
        if overlay.width:
            width = overlay.width * self.scale
        else:
            width = self.measure_text(overlay.text, font_size, overlay.font_family, overlay.font_weight) + TEXT_PADDING
        if overlay.height:
            height = overlay.height * self.scale
        else:
            height = font_size * LINE_HEIGHT_FACTOR
        return width, height

    def bounding_box(self, overlay: TextOverlay) -> PixelBox:
        x, y = self.origin(overlay)
        width, height = self.box_size(overlay)
        return PixelBox(x, y, width, height)

    def text_anchor_x(self, overlay: TextOverlay) -> float:
        """Where the text is anchored horizontally, depending on alignment"""
        box = self.bounding_box(overlay)
        if overlay.text_align == TextAlign.CENTER:
            return box.x + box.width / 2
        if overlay.text_align == TextAlign.RIGHT:
            return box.right
        return box.x

    def selection_box(self, overlay: TextOverlay) -> PixelBox:
        box = self.bounding_box(overlay)
        return PixelBox(box.x - HIT_MARGIN_X, box.y - HIT_MARGIN_Y, box.width, box.height)

    def resize_handles(self, overlay: TextOverlay, size: float = HANDLE_SIZE) -> List[PixelBox]:
        """Four corner handles of the selection box, clockwise from top-left"""
        sel = self.selection_box(overlay)
        half = size / 2
        corners = [
            (sel.x, sel.y),
            (sel.right, sel.y),
            (sel.right, sel.bottom),
            (sel.x, sel.bottom),
        ]
        return [PixelBox(cx - half, cy - half, size, size) for cx, cy in corners]

    def hit_test(self, overlays: Sequence[TextOverlay], px: float, py: float) -> Optional[TextOverlay]:
        """
        Topmost overlay under a pointer position.

        overlays must be in draw order (as returned by visible_at); they
        are checked back to front so the overlay drawn last wins.
        """
        for overlay in reversed(overlays):
            box = self.bounding_box(overlay).expanded(HIT_MARGIN_X, HIT_MARGIN_Y)
            if box.contains(px, py):
                return overlay
        return None

    def to_percent(self, px: float, py: float) -> tuple:
        """Inverse of origin(): a pixel position as canvas percentages"""
        width = self.surface.width or 1
        height = self.surface.height or 1
        return px / width * 100, py / height * 100
