"""
Export Session - lifecycle and progress of one editor's export

    IDLE -> PREPARING -> ENCODING -> COMPLETE
                 \\           \\
                  +-----------+--> ERROR  (stays until reset())

Only one export runs per editor; begin() while PREPARING or ENCODING
raises ExportInProgressError. Every run gets a generation number. The
pipeline passes it back with each encoder callback, and callbacks from a
run that has since been cancelled or reset are dropped.
"""

import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List, Optional

from utils.logger import logger


# Progress bands: staging fills 0-10, encoder progress is mapped into 10-90
PREPARING_PROGRESS = 0.0
ENCODING_PROGRESS_START = 10.0
ENCODING_PROGRESS_SPAN = 80.0
ENCODING_PROGRESS_CAP = 90.0
FINALIZING_PROGRESS = 95.0


class ExportStatus(str, Enum):
    """Export lifecycle states"""
    IDLE = "idle"
    PREPARING = "preparing"
    ENCODING = "encoding"
    COMPLETE = "complete"
    ERROR = "error"


class ExportInProgressError(RuntimeError):
    """Raised when an export is requested while another one is running"""
    pass


@dataclass(frozen=True)
class ExportProgress:
    """UI-facing progress report"""
    status: ExportStatus = ExportStatus.IDLE
    progress: float = 0.0
    message: str = ""
    estimated_seconds_remaining: Optional[float] = None
    output_path: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "progress": self.progress,
            "message": self.message,
            "estimated_seconds_remaining": self.estimated_seconds_remaining,
            "output_path": self.output_path,
        }


ProgressListener = Callable[[ExportProgress], None]


def remap_encoder_progress(fraction: float) -> float:
    """Encoder fraction 0..1 -> session progress 10..90"""
    fraction = max(0.0, min(1.0, fraction))
    return min(ENCODING_PROGRESS_CAP, ENCODING_PROGRESS_START + fraction * ENCODING_PROGRESS_SPAN)


def estimate_remaining(fraction: float, elapsed: float) -> Optional[float]:
    """Linear extrapolation from elapsed encode time; None until there is progress"""
    if fraction <= 0 or elapsed <= 0:
        return None
    fraction = min(1.0, fraction)
    return elapsed / fraction * (1.0 - fraction)


class ExportSession:
    """Single-export state machine with listener notification"""

    ACTIVE_STATES = (ExportStatus.PREPARING, ExportStatus.ENCODING)

    def __init__(self):
        self.generation = 0
        self._progress = ExportProgress()
        self._listeners: List[ProgressListener] = []
        self._abort_handler: Optional[Callable[[], None]] = None
        self.started_at: Optional[float] = None

    @property
    def progress(self) -> ExportProgress:
        return self._progress

    @property
    def status(self) -> ExportStatus:
        return self._progress.status

    @property
    def is_active(self) -> bool:
        return self.status in self.ACTIVE_STATES

    @property
    def output_path(self) -> Optional[str]:
        return self._progress.output_path

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        """Register a progress listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_abort_handler(self, handler: Optional[Callable[[], None]]) -> None:
        """Hook invoked by cancel() to stop the running encoder"""
        self._abort_handler = handler

    def _set(self, **changes) -> None:
        self._progress = replace(self._progress, **changes)
        for listener in list(self._listeners):
            listener(self._progress)

    def _is_current(self, generation: int, event: str) -> bool:
        if generation != self.generation:
            logger.warning(
                f"Dropped stale export {event} (generation {generation}, current {self.generation})"
            )
            return False
        return True

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def begin(self) -> int:
        """
        Start a new export run.

        Returns:
            The generation of the new run; pass it back with every callback

        Raises:
            ExportInProgressError: An export is already preparing or encoding
            RuntimeError: The previous run failed and was not reset
        """
        if self.is_active:
            raise ExportInProgressError(f"Export already {self.status.value}")
        if self.status == ExportStatus.ERROR:
            raise RuntimeError("Previous export failed")

        self.generation += 1
        self.started_at = time.time()
        self._progress = ExportProgress()
        self._set(
            status=ExportStatus.PREPARING,
            progress=PREPARING_PROGRESS,
            message="Preparing video...",
        )
        logger.info(f"Export started (generation {self.generation})")
        return self.generation

    def report_staging(self, generation: int, fraction: float) -> bool:
        """Input staging progress, 0..1 -> 0..10"""
        if not self._is_current(generation, "staging progress") or self.status != ExportStatus.PREPARING:
            return False
        fraction = max(0.0, min(1.0, fraction))
        self._set(progress=ENCODING_PROGRESS_START * fraction)
        return True

    def mark_encoding(self, generation: int) -> bool:
        if not self._is_current(generation, "encoding start") or self.status != ExportStatus.PREPARING:
            return False
        self._set(
            status=ExportStatus.ENCODING,
            progress=ENCODING_PROGRESS_START,
            message="Processing video...",
        )
        return True

    def report_progress(self, generation: int, fraction: float, elapsed: float) -> bool:
        """Encoder progress callback. Returns False if the report was dropped."""
        if not self._is_current(generation, "progress") or self.status != ExportStatus.ENCODING:
            return False
        self._set(
            progress=remap_encoder_progress(fraction),
            message=f"Encoding video... {round(max(0.0, min(1.0, fraction)) * 100)}%",
            estimated_seconds_remaining=estimate_remaining(fraction, elapsed),
        )
        return True

    def mark_finalizing(self, generation: int) -> bool:
        if not self._is_current(generation, "finalizing") or self.status != ExportStatus.ENCODING:
            return False
        self._set(progress=FINALIZING_PROGRESS, message="Finalizing...", estimated_seconds_remaining=None)
        return True

    def complete(self, generation: int, output_path: str) -> bool:
        if not self._is_current(generation, "completion") or not self.is_active:
            return False
        self._set(
            status=ExportStatus.COMPLETE,
            progress=100.0,
            message="Export complete!",
            estimated_seconds_remaining=None,
            output_path=str(output_path),
        )
        elapsed = time.time() - self.started_at if self.started_at else 0.0
        logger.info(f"Export complete: {output_path} ({elapsed:.1f}s)")
        return True

    def fail(self, generation: int, message: str) -> bool:
        if not self._is_current(generation, "failure") or not self.is_active:
            return False
        self._set(
            status=ExportStatus.ERROR,
            progress=0.0,
            message=message or "Export failed",
            estimated_seconds_remaining=None,
        )
        logger.error(f"Export failed: {message}")
        return True

    def cancel(self) -> bool:
        """
        Cancel the running export.

        The session is IDLE again immediately; the encoder is asked to stop
        and anything it still reports for the cancelled run is ignored.
        """
        if not self.is_active:
            return False
        self.generation += 1
        self._progress = ExportProgress()
        self._set(message="Export cancelled")
        if self._abort_handler is not None:
            self._abort_handler()
        logger.info("Export cancelled")
        return True

    def reset(self) -> None:
        """Back to IDLE from any state, invalidating the current run"""
        if self.is_active and self._abort_handler is not None:
            self._abort_handler()
        self.generation += 1
        self.started_at = None
        self._progress = ExportProgress()
        self._set()

    def retry(self) -> int:
        self.reset()
        return self.begin()
