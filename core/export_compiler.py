"""
Export Command Compiler

Reads the final edit state once and turns it into an immutable ExportPlan:
trim window, output frame, codec parameters and one drawtext command per
overlay that survives the trim. The plan renders to an ffmpeg argument list.

Nothing here performs I/O or mutates the editor state.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from config import settings
from models.editor_state import (
    ASPECT_RATIOS,
    AspectRatioPreset,
    EditorState,
    ExportFormat,
    ExportQuality,
    ExportSettings,
)
from models.overlay import TextAlign, TextOverlay
from models.time_range import TimeRange
from utils.logger import logger
from .geometry import GeometryResolver, SurfaceSize


@dataclass(frozen=True)
class QualityPreset:
    """Bitrates are ffmpeg-style strings ("2.5M", "128k")"""
    video_bitrate: str
    audio_bitrate: str
    crf: int


QUALITY_SETTINGS = {
    ExportQuality.LOW: QualityPreset("1M", "96k", 35),
    ExportQuality.MEDIUM: QualityPreset("2.5M", "128k", 28),
    ExportQuality.HIGH: QualityPreset("5M", "192k", 23),
    ExportQuality.ULTRA: QualityPreset("10M", "320k", 18),
}

# (video codec, audio codec, extra container flags)
FORMAT_CODECS = {
    ExportFormat.MP4: ("libx264", "aac", ["-movflags", "+faststart"]),
    ExportFormat.MOV: ("libx264", "aac", ["-movflags", "+faststart"]),
    ExportFormat.WEBM: ("libvpx-vp9", "libopus", []),
}

FORMAT_MIME_TYPES = {
    ExportFormat.MP4: "video/mp4",
    ExportFormat.MOV: "video/quicktime",
    ExportFormat.WEBM: "video/webm",
}

# Background boxes are drawn semi-transparent with a small border
BOX_OPACITY = 0.5
BOX_BORDER = 5

_BITRATE_SUFFIXES = {"k": 1_000, "m": 1_000_000, "g": 1_000_000_000}


def parse_bitrate(value: str) -> int:
    """'2.5M' -> 2500000 bits per second"""
    value = value.strip()
    multiplier = _BITRATE_SUFFIXES.get(value[-1:].lower())
    if multiplier is None:
        return int(float(value))
    return int(float(value[:-1]) * multiplier)


def escape_drawtext_text(text: str) -> str:
    """
    Escape a string for a single-quoted drawtext option value.

    Order matters: backslash first, so the backslashes introduced by the
    later substitutions are not escaped a second time.
    - \\ -> \\\\
    - '  -> '\\''  (close quote, literal quote, reopen)
    - :  -> \\:
    """
    escaped = text.replace("\\", "\\\\")
    escaped = escaped.replace("'", "'\\''")
    escaped = escaped.replace(":", "\\:")
    return escaped


def format_seconds(value: float) -> str:
    """Seconds for filter expressions: at most 3 decimals, no trailing zeros"""
    text = f"{round(value, 3):.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def ffmpeg_color(color: str, opacity: Optional[float] = None) -> str:
    """'#ff0000' -> '0xff0000', optionally with an @alpha suffix"""
    if color.startswith("#"):
        color = "0x" + color[1:]
    if opacity is not None:
        color = f"{color}@{format_seconds(opacity)}"
    return color


def _even(value: int) -> int:
    return max(2, int(value) - int(value) % 2)


def resolve_output_size(export_settings: ExportSettings) -> Tuple[int, int]:
    """
    Output frame for the export settings.

    Presets use their fixed size. Custom sizes are rounded down to even
    values (yuv420p needs even dimensions) with a minimum of 2.
    """
    if export_settings.aspect_ratio == AspectRatioPreset.CUSTOM:
        return _even(export_settings.width), _even(export_settings.height)
    info = ASPECT_RATIOS[export_settings.aspect_ratio]
    return info.width, info.height


@dataclass(frozen=True)
class DrawTextCommand:
    """One resolved drawtext filter"""
    overlay_id: str
    text: str
    x: str
    y: int
    font_size: int
    font_color: str
    font_file: str
    enable_start: float
    enable_end: float
    box_color: Optional[str] = None

    @property
    def enable_expression(self) -> str:
        return f"between(t,{format_seconds(self.enable_start)},{format_seconds(self.enable_end)})"

    def to_filter(self) -> str:
        parts = [
            f"drawtext=text='{self.text}'",
            f"fontfile='{escape_drawtext_text(self.font_file)}'",
            f"x={self.x}",
            f"y={self.y}",
            f"fontsize={self.font_size}",
            f"fontcolor={self.font_color}",
        ]
        if self.box_color:
            parts.append(f"box=1:boxcolor={self.box_color}:boxborderw={BOX_BORDER}")
        parts.append(f"enable='{self.enable_expression}'")
        return ":".join(parts)


@dataclass(frozen=True)
class ExportPlan:
    """Immutable description of one export; see compile_export()"""
    trim: TimeRange
    width: int
    height: int
    fps: int
    quality: ExportQuality
    format: ExportFormat
    video_bitrate: str
    audio_bitrate: str
    crf: int
    video_codec: str
    audio_codec: str
    encoder_preset: str
    draw_commands: Tuple[DrawTextCommand, ...] = ()

    @property
    def seek_offset(self) -> float:
        return self.trim.start

    @property
    def duration(self) -> float:
        return self.trim.duration

    @property
    def mime_type(self) -> str:
        return FORMAT_MIME_TYPES[self.format]

    @property
    def scale_filter(self) -> str:
        return f"scale={self.width}:{self.height}:force_original_aspect_ratio=decrease"

    @property
    def pad_filter(self) -> str:
        return f"pad={self.width}:{self.height}:(ow-iw)/2:(oh-ih)/2:black"

    @property
    def filter_expression(self) -> str:
        filters = [self.scale_filter, self.pad_filter]
        filters.extend(cmd.to_filter() for cmd in self.draw_commands)
        return ",".join(filters)

    def codec_args(self) -> List[str]:
        args = ["-c:v", self.video_codec]
        if self.format == ExportFormat.WEBM:
            # Constant quality mode for VP9
            args += ["-crf", str(self.crf), "-b:v", "0"]
        else:
            bufsize = parse_bitrate(self.video_bitrate) * 2
            args += [
                "-preset", self.encoder_preset,
                "-crf", str(self.crf),
                "-maxrate", self.video_bitrate,
                "-bufsize", str(bufsize),
                "-pix_fmt", "yuv420p",
            ]
        args += ["-c:a", self.audio_codec, "-b:a", self.audio_bitrate]
        args += FORMAT_CODECS[self.format][2]
        return args

    def to_ffmpeg_args(self, input_path: str, output_path: str) -> List[str]:
        """Arguments for the ffmpeg binary (without the binary itself)"""
        return [
            "-y",
            "-ss", format_seconds(self.seek_offset),
            "-i", str(input_path),
            "-t", format_seconds(self.duration),
            "-vf", self.filter_expression,
            "-r", str(self.fps),
            *self.codec_args(),
            str(output_path),
        ]

    def to_dict(self) -> dict:
        return {
            "trim_start": self.trim.start,
            "trim_end": self.trim.end,
            "duration": self.duration,
            "width": self.width,
            "height": self.height,
            "fps": self.fps,
            "quality": self.quality.value,
            "format": self.format.value,
            "video_bitrate": self.video_bitrate,
            "audio_bitrate": self.audio_bitrate,
            "crf": self.crf,
            "video_codec": self.video_codec,
            "audio_codec": self.audio_codec,
            "filter_expression": self.filter_expression,
            "overlay_count": len(self.draw_commands),
            "estimated_bytes": estimate_output_bytes(self),
        }


def _x_expression(resolver: GeometryResolver, overlay: TextOverlay) -> str:
    anchor = round(resolver.text_anchor_x(overlay))
    if overlay.text_align == TextAlign.CENTER:
        return f"{anchor}-text_w/2"
    if overlay.text_align == TextAlign.RIGHT:
        return f"{anchor}-text_w"
    return str(anchor)


def _draw_command(overlay: TextOverlay, trim: TimeRange, resolver: GeometryResolver) -> Optional[DrawTextCommand]:
    visible = overlay.window.intersection(trim)
    if visible is None:
        return None
    relative = visible.shifted(-trim.start)

    _, y = resolver.origin(overlay)
    box_color = None
    if overlay.has_background:
        box_color = ffmpeg_color(overlay.background_color, BOX_OPACITY)

    return DrawTextCommand(
        overlay_id=overlay.id,
        text=escape_drawtext_text(overlay.text),
        x=_x_expression(resolver, overlay),
        y=round(y),
        font_size=max(1, round(resolver.font_size(overlay))),
        font_color=ffmpeg_color(overlay.color, overlay.opacity),
        font_file=settings.DEFAULT_FONT_FILE,
        enable_start=relative.start,
        enable_end=relative.end,
        box_color=box_color,
    )


def compile_export(state: EditorState, export_settings: Optional[ExportSettings] = None) -> ExportPlan:
    """
    Compile the current edit state into an ExportPlan.

    Overlay positions are resolved at the output resolution and font sizes
    scale with output_width / 1920. Each overlay is enabled only for its
    intersection with the trim window, expressed relative to the trimmed
    output (the output starts at t=0). Overlays that never show inside the
    trim window are dropped.

    Args:
        state: Editor state to read
        export_settings: Overrides state.export_settings

    Returns:
        ExportPlan
    """
    export_settings = export_settings or state.export_settings
    trim = state.trim
    width, height = resolve_output_size(export_settings)
    quality = QUALITY_SETTINGS[export_settings.quality]
    video_codec, audio_codec, _ = FORMAT_CODECS[export_settings.format]

    resolver = GeometryResolver(
        SurfaceSize(width, height),
        scale=width / settings.FONT_SCALE_BASELINE_WIDTH,
    )

    commands = []
    for overlay in state.overlays:
        command = _draw_command(overlay, trim, resolver)
        if command is None:
            logger.debug(f"Overlay {overlay.id} is outside the trim window {trim}, skipped")
            continue
        commands.append(command)

    plan = ExportPlan(
        trim=trim,
        width=width,
        height=height,
        fps=export_settings.fps,
        quality=export_settings.quality,
        format=export_settings.format,
        video_bitrate=quality.video_bitrate,
        audio_bitrate=quality.audio_bitrate,
        crf=quality.crf,
        video_codec=video_codec,
        audio_codec=audio_codec,
        encoder_preset=settings.ENCODER_PRESET,
        draw_commands=tuple(commands),
    )
    logger.debug(
        f"Compiled export: {width}x{height} {export_settings.format.value} "
        f"{export_settings.quality.value}, trim {trim}, {len(commands)} overlay(s)"
    )
    return plan


def estimate_output_bytes(plan: ExportPlan) -> int:
    """Rough output size from the target bitrates"""
    bits_per_second = parse_bitrate(plan.video_bitrate) + parse_bitrate(plan.audio_bitrate)
    return int(bits_per_second * plan.duration / 8)
