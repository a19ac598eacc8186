#!/usr/bin/env python3
"""
Editor Facade Tests

Video loading, playback, output frame settings and preference persistence.
"""

import json

from core.editor import Editor
from core.preferences import EditorPreferences, PreferenceStore
from models.editor_state import AspectRatioPreset, ExportFormat, ExportQuality
from models.time_range import TimeRange
from models.video import VideoSource

EPSILON = 0.001


def assert_close(actual, expected, msg=""):
    """Assert two values are close within EPSILON tolerance"""
    assert abs(actual - expected) < EPSILON, f"{msg}: Expected {expected}, got {actual}"


class TestVideoLoading:
    """load_video / unload_video"""

    def test_load_resets_trim_and_playhead(self, editor):
        assert editor.state.trim == TimeRange(0, 60)
        assert editor.state.current_time == 0
        assert editor.state.duration == 60

    def test_reload_clamps_overlay_windows(self, editor):
        overlay_id = editor.overlays.add({"start_time": 20, "end_time": 50})
        editor.load_video(VideoSource(name="short.mp4", duration=30, width=1280, height=720))
        overlay = editor.overlays.get(overlay_id)
        assert overlay.end_time == 30
        assert overlay.start_time == 20
        assert editor.state.trim == TimeRange(0, 30)

    def test_unload(self, editor):
        editor.play()
        editor.unload_video()
        assert editor.state.video is None
        assert editor.state.duration == 0
        assert not editor.state.is_playing

    def test_editors_are_independent(self, sample_video):
        first, second = Editor(), Editor()
        first.load_video(sample_video)
        first.overlays.add()
        assert len(second.overlays) == 0
        assert second.state.video is None


class TestPlayback:
    """Play, tick and playback settings"""

    def test_tick_advances_only_while_playing(self, editor):
        editor.tick(1.0)
        assert editor.state.current_time == 0
        editor.play()
        assert_close(editor.tick(1.5), 1.5)

    def test_tick_respects_rate(self, editor):
        editor.set_playback_rate(2)
        editor.play()
        assert_close(editor.tick(1.0), 2.0)

    def test_tick_loops_inside_trim(self, editor):
        editor.set_trim(10, 20)
        editor.seek(19.8)
        editor.play()
        assert editor.tick(0.5) == 10

    def test_cannot_play_without_video(self):
        editor = Editor()
        editor.play()
        assert not editor.state.is_playing

    def test_volume(self, editor):
        editor.set_volume(1.7)
        assert editor.state.volume == 1
        editor.set_volume(0)
        assert editor.state.is_muted
        editor.set_volume(0.4)
        assert not editor.state.is_muted

    def test_playback_rate_clamped(self, editor):
        editor.set_playback_rate(10)
        assert editor.state.playback_rate == 2
        editor.set_playback_rate(0.1)
        assert editor.state.playback_rate == 0.25

    def test_seek_relative(self, editor):
        editor.seek(10)
        assert editor.seek_relative(-15) == 0


class TestOutputFrame:
    """Aspect ratio, custom sizes and export settings"""

    def test_set_aspect_ratio_syncs_export_size(self, editor):
        editor.set_aspect_ratio(AspectRatioPreset.SQUARE)
        export = editor.state.export_settings
        assert export.aspect_ratio == AspectRatioPreset.SQUARE
        assert (export.width, export.height) == (1080, 1080)

    def test_set_aspect_ratio_records_history(self, editor):
        editor.set_aspect_ratio(AspectRatioPreset.PORTRAIT)
        assert editor.history.can_undo

    def test_custom_dimensions_switch_to_custom(self, editor):
        editor.set_custom_dimensions(1280, 720)
        assert editor.state.aspect_ratio == AspectRatioPreset.CUSTOM
        assert editor.compile_export().width == 1280

    def test_update_export_settings(self, editor):
        editor.update_export_settings({"quality": "medium", "format": "webm", "fps": 24})
        export = editor.state.export_settings
        assert export.quality == ExportQuality.MEDIUM
        assert export.format == ExportFormat.WEBM
        assert export.fps == 24

    def test_set_trim_records_only_changes(self, editor):
        editor.set_trim(0, 60)
        assert not editor.history.can_undo
        editor.set_trim(5, 10)
        assert editor.history.undo_depth == 1


class TestPreferences:
    """Persisted preferences"""

    def test_missing_file_gives_defaults(self, temp_dir):
        store = PreferenceStore(str(temp_dir / "missing.json"))
        assert store.load() == EditorPreferences()

    def test_corrupt_file_gives_defaults(self, temp_dir):
        path = temp_dir / "prefs.json"
        path.write_text("{not json")
        assert PreferenceStore(str(path)).load() == EditorPreferences()

    def test_invalid_values_give_defaults(self, temp_dir):
        path = temp_dir / "prefs.json"
        path.write_text(json.dumps({"aspect_ratio": "cinemascope", "volume": 3}))
        assert PreferenceStore(str(path)).load() == EditorPreferences()

    def test_save_and_apply(self, editor, preference_store, sample_video):
        editor.set_aspect_ratio(AspectRatioPreset.PORTRAIT)
        editor.update_export_settings({"quality": "ultra", "format": "mov"})
        editor.set_volume(0.3)
        editor.set_playback_rate(1.5)
        assert editor.save_preferences()

        fresh = Editor(preferences=preference_store)
        fresh.apply_preferences()
        fresh.load_video(sample_video)
        assert fresh.state.aspect_ratio == AspectRatioPreset.PORTRAIT
        assert (fresh.state.export_settings.width, fresh.state.export_settings.height) == (1080, 1920)
        assert fresh.state.export_settings.quality == ExportQuality.ULTRA
        assert fresh.state.export_settings.format == ExportFormat.MOV
        assert_close(fresh.state.volume, 0.3)
        assert_close(fresh.state.playback_rate, 1.5)

    def test_apply_is_not_undoable(self, editor):
        editor.apply_preferences(EditorPreferences(aspect_ratio=AspectRatioPreset.SQUARE))
        assert not editor.history.can_undo


class TestReset:
    """Full editor reset"""

    def test_reset(self, editor):
        editor.overlays.add()
        editor.export_session.begin()
        editor.reset()
        assert editor.state.video is None
        assert len(editor.overlays) == 0
        assert not editor.history.can_undo
        assert not editor.export_session.is_active
