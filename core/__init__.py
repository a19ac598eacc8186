"""Core logic for the Titan editor"""

from .editor import Editor
from .export_compiler import ExportPlan, DrawTextCommand, compile_export, estimate_output_bytes
from .export_pipeline import ExportPipeline
from .export_session import ExportSession, ExportStatus, ExportProgress, ExportInProgressError
from .geometry import GeometryResolver, SurfaceSize, PixelBox
from .history import SnapshotStore, Snapshot
from .overlay_registry import OverlayRegistry
from .preferences import EditorPreferences, PreferenceStore
from .timeline_controller import TimelineController, DragMode, TimelineHandle

__all__ = [
    "Editor",
    "ExportPlan",
    "DrawTextCommand",
    "compile_export",
    "estimate_output_bytes",
    "ExportPipeline",
    "ExportSession",
    "ExportStatus",
    "ExportProgress",
    "ExportInProgressError",
    "GeometryResolver",
    "SurfaceSize",
    "PixelBox",
    "SnapshotStore",
    "Snapshot",
    "OverlayRegistry",
    "EditorPreferences",
    "PreferenceStore",
    "TimelineController",
    "DragMode",
    "TimelineHandle",
]
