#!/usr/bin/env python3
"""
Export Compiler Tests

Trim-relative enablement, output framing, text escaping, codec tables and
the rendered ffmpeg argument list.
"""

import pytest

from core.export_compiler import (
    QUALITY_SETTINGS,
    compile_export,
    escape_drawtext_text,
    estimate_output_bytes,
    format_seconds,
    parse_bitrate,
    resolve_output_size,
)
from models.editor_state import (
    AspectRatioPreset,
    ExportFormat,
    ExportQuality,
    ExportSettings,
)


class TestEscaping:
    """drawtext text escaping"""

    def test_plain_text_unchanged(self):
        assert escape_drawtext_text("Hello world") == "Hello world"

    def test_quote(self):
        assert escape_drawtext_text("it's") == "it'\\''s"

    def test_colon(self):
        assert escape_drawtext_text("10:30") == "10\\:30"

    def test_backslash(self):
        assert escape_drawtext_text("a\\b") == "a\\\\b"

    def test_substitutions_are_not_re_escaped(self):
        # Each input character maps to exactly one escape sequence
        assert escape_drawtext_text("\\'") == "\\\\'\\''"
        assert escape_drawtext_text("\\:") == "\\\\\\:"


class TestFormatting:
    """Numbers in filter expressions"""

    @pytest.mark.parametrize("value,expected", [
        (2.0, "2"),
        (8, "8"),
        (0.5, "0.5"),
        (1.23456, "1.235"),
        (0, "0"),
    ])
    def test_format_seconds(self, value, expected):
        assert format_seconds(value) == expected

    def test_parse_bitrate(self):
        assert parse_bitrate("2.5M") == 2_500_000
        assert parse_bitrate("128k") == 128_000
        assert parse_bitrate("5000") == 5000


class TestOutputSize:
    """Frame size resolution"""

    def test_presets(self):
        assert resolve_output_size(ExportSettings(aspect_ratio=AspectRatioPreset.PORTRAIT)) == (1080, 1920)
        assert resolve_output_size(ExportSettings(aspect_ratio=AspectRatioPreset.SQUARE)) == (1080, 1080)

    def test_custom_rounded_down_to_even(self):
        settings = ExportSettings(aspect_ratio=AspectRatioPreset.CUSTOM, width=1281, height=721)
        assert resolve_output_size(settings) == (1280, 720)

    def test_custom_minimum(self):
        settings = ExportSettings(aspect_ratio=AspectRatioPreset.CUSTOM, width=1, height=0)
        assert resolve_output_size(settings) == (2, 2)


class TestEnablement:
    """Overlay windows relative to the trimmed output"""

    def test_relative_window(self, editor):
        editor.set_trim(10, 30)
        editor.overlays.add({"start_time": 12, "end_time": 18})
        plan = editor.compile_export()
        assert len(plan.draw_commands) == 1
        assert plan.draw_commands[0].enable_expression == "between(t,2,8)"

    def test_window_partially_outside_is_cut(self, editor):
        editor.set_trim(10, 30)
        editor.overlays.add({"start_time": 5, "end_time": 15})
        editor.overlays.add({"start_time": 25, "end_time": 40})
        commands = editor.compile_export().draw_commands
        assert commands[0].enable_expression == "between(t,0,5)"
        assert commands[1].enable_expression == "between(t,15,20)"

    def test_overlay_outside_trim_is_dropped(self, editor):
        editor.overlays.add({"start_time": 0, "end_time": 5})
        editor.set_trim(10, 30)
        plan = editor.compile_export()
        assert plan.draw_commands == ()
        assert "drawtext" not in plan.filter_expression

    def test_overlay_touching_trim_is_dropped(self, editor):
        editor.overlays.add({"start_time": 5, "end_time": 10})
        editor.set_trim(10, 30)
        assert editor.compile_export().draw_commands == ()


class TestFraming:
    """Scale then pad, never stretch"""

    def test_portrait_output_scales_then_pads(self, editor):
        editor.set_aspect_ratio(AspectRatioPreset.PORTRAIT)
        plan = editor.compile_export()
        assert (plan.width, plan.height) == (1080, 1920)
        assert plan.filter_expression.startswith(
            "scale=1080:1920:force_original_aspect_ratio=decrease,"
            "pad=1080:1920:(ow-iw)/2:(oh-ih)/2:black"
        )

    def test_overlay_position_at_output_resolution(self, editor):
        editor.set_aspect_ratio(AspectRatioPreset.PORTRAIT)
        editor.overlays.add({"x": 10, "y": 50, "text_align": "left", "font_size": 32})
        command = editor.compile_export().draw_commands[0]
        assert command.x == "108"
        assert command.y == 960
        # 32 * 1080 / 1920
        assert command.font_size == 18

    def test_center_alignment_anchor(self, editor):
        editor.overlays.add({"x": 10, "y": 10, "width": 300, "text_align": "center"})
        command = editor.compile_export().draw_commands[0]
        assert command.x == "342-text_w/2"

    def test_right_alignment_anchor(self, editor):
        editor.overlays.add({"x": 10, "y": 10, "width": 300, "text_align": "right"})
        command = editor.compile_export().draw_commands[0]
        assert command.x == "492-text_w"


class TestDrawText:
    """Rendered drawtext filters"""

    def test_filter_contents(self, editor):
        editor.overlays.add({"text": "Hi: it's", "color": "#ff0000", "opacity": 0.5})
        draw = editor.compile_export().draw_commands[0].to_filter()
        assert draw.startswith("drawtext=text='Hi\\: it'\\''s'")
        assert ":fontcolor=0xff0000@0.5" in draw
        assert "box=1" not in draw
        assert draw.endswith(":enable='between(t,0,5)'")

    def test_background_box(self, editor):
        editor.overlays.add({"background_color": "#000000"})
        draw = editor.compile_export().draw_commands[0].to_filter()
        assert ":box=1:boxcolor=0x000000@0.5:boxborderw=5" in draw

    def test_overlays_keep_draw_order(self, editor):
        first = editor.overlays.add({"text": "first"})
        second = editor.overlays.add({"text": "second"})
        plan = editor.compile_export()
        assert [c.overlay_id for c in plan.draw_commands] == [first, second]
        assert plan.filter_expression.index("first") < plan.filter_expression.index("second")


class TestCodecs:
    """Quality table and containers"""

    def test_quality_table(self):
        assert QUALITY_SETTINGS[ExportQuality.LOW].crf == 35
        assert QUALITY_SETTINGS[ExportQuality.MEDIUM].video_bitrate == "2.5M"
        assert QUALITY_SETTINGS[ExportQuality.HIGH].audio_bitrate == "192k"
        assert QUALITY_SETTINGS[ExportQuality.ULTRA].crf == 18

    def test_mp4_args(self, editor):
        editor.set_trim(10, 30)
        args = editor.compile_export().to_ffmpeg_args("in.mp4", "out.mp4")
        assert args[args.index("-ss") + 1] == "10"
        assert args[args.index("-t") + 1] == "20"
        assert args.index("-ss") < args.index("-i")
        assert args[args.index("-c:v") + 1] == "libx264"
        assert args[args.index("-c:a") + 1] == "aac"
        assert args[args.index("-crf") + 1] == "23"
        assert "+faststart" in args
        assert args[-1] == "out.mp4"

    def test_webm_args(self, editor):
        editor.update_export_settings({"format": "webm", "quality": "low"})
        args = editor.compile_export().to_ffmpeg_args("in.mp4", "out.webm")
        assert args[args.index("-c:v") + 1] == "libvpx-vp9"
        assert args[args.index("-c:a") + 1] == "libopus"
        assert args[args.index("-b:v") + 1] == "0"
        assert args[args.index("-crf") + 1] == "35"
        assert "+faststart" not in args

    def test_settings_override(self, editor):
        override = ExportSettings(quality=ExportQuality.ULTRA, format=ExportFormat.MOV)
        plan = compile_export(editor.state, override)
        assert plan.crf == 18
        assert plan.mime_type == "video/quicktime"
        assert editor.state.export_settings.quality == ExportQuality.HIGH

    def test_estimated_size(self, editor):
        editor.set_trim(0, 10)
        plan = editor.compile_export()
        # (5M + 192k) * 10s / 8
        assert estimate_output_bytes(plan) == 6_490_000


class TestPurity:
    """Compilation reads state only"""

    def test_state_unchanged(self, editor):
        editor.overlays.add({"start_time": 12, "end_time": 18})
        editor.set_trim(10, 30)
        before = editor.to_dict()
        editor.compile_export()
        assert editor.to_dict() == before

    def test_plan_is_immutable(self, editor):
        plan = editor.compile_export()
        with pytest.raises(AttributeError):
            plan.width = 10
