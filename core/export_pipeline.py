"""Export Pipeline - drives one export from edit state to output file"""

from pathlib import Path
from typing import Optional
from uuid import uuid4

from backend.ffmpeg_utils import EncoderError, FFmpegEncoder
from config import settings
from utils.logger import logger
from .export_session import ExportProgress


class ExportPipeline:
    """
    Compiles the editor's state and runs it through an encoder.

    The encoder is anything with
    ``async encode(plan, input_path, output_path, on_progress)`` and
    ``abort()``; FFmpegEncoder is the default. Encoder failures end in
    the session's ERROR state and never touch the edit state.
    """

    def __init__(self, editor, encoder=None):
        self.editor = editor
        self.encoder = encoder or FFmpegEncoder()

    def default_output_path(self, extension: str) -> Path:
        output_dir = Path(settings.OUTPUT_DIR)
        output_dir.mkdir(parents=True, exist_ok=True)
        return output_dir / f"export_{uuid4().hex[:8]}.{extension}"

    async def export(self, output_path: Optional[str] = None, input_path: Optional[str] = None) -> ExportProgress:
        """
        Run a full export.

        Args:
            output_path: Destination; a fresh file in OUTPUT_DIR when omitted
            input_path: Source video; the loaded video's path when omitted

        Returns:
            The session progress after the run (COMPLETE, ERROR, or IDLE if
            the run was cancelled meanwhile)

        Raises:
            ExportInProgressError: Another export of this editor is running
        """
        generation = self.start()
        return await self.run(generation, output_path, input_path)

    def start(self) -> int:
        """
        Claim the editor's export session for a new run.

        Returns:
            The run's generation, to be passed to run()

        Raises:
            ExportInProgressError: Another export of this editor is running
        """
        generation = self.editor.export_session.begin()
        self.editor.export_session.set_abort_handler(self.encoder.abort)
        return generation

    async def run(self, generation: int, output_path: Optional[str] = None, input_path: Optional[str] = None) -> ExportProgress:
        """Compile and encode for a run claimed with start()"""
        session = self.editor.export_session
        try:
            video = self.editor.state.video
            source = input_path or (video.path if video else None)
            if not source:
                raise EncoderError("No video loaded")
            if not Path(source).is_file():
                raise EncoderError(f"Input video not found: {source}")

            plan = self.editor.compile_export()
            if plan.duration <= 0:
                raise EncoderError("Nothing to export: the trim window is empty")
            session.report_staging(generation, 0.5)

            try:
                target = Path(output_path) if output_path else self.default_output_path(plan.format.value)
                target.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise EncoderError(f"Cannot write output: {e}")
            session.report_staging(generation, 1.0)

            logger.info(
                f"Encoding {Path(source).name} -> {target.name} "
                f"({plan.width}x{plan.height}, {plan.duration:.2f}s, {len(plan.draw_commands)} overlay(s))"
            )
            if not session.mark_encoding(generation):
                return session.progress

            def on_progress(fraction: float, elapsed: float) -> None:
                session.report_progress(generation, fraction, elapsed)

            result = await self.encoder.encode(plan, str(source), str(target), on_progress)
            session.mark_finalizing(generation)
            session.complete(generation, str(result))

        except EncoderError as e:
            session.fail(generation, str(e))

        except Exception as e:
            # Any other failure also ends the run in ERROR
            session.fail(generation, f"Export failed: {e}")

        finally:
            if session.generation == generation:
                session.set_abort_handler(None)

        return session.progress

    def cancel(self) -> bool:
        return self.editor.export_session.cancel()
