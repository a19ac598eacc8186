"""FFmpeg utilities - encoder driver and ffprobe helpers"""

import asyncio
import json
import subprocess
import time
from typing import Callable, List, Optional

from config import settings
from utils.logger import logger


# Lines of ffmpeg stderr kept for error messages
STDERR_TAIL_LINES = 20

ProgressCallback = Callable[[float, float], None]


class EncoderError(Exception):
    """ffmpeg exited with an error, timed out, or could not be started"""
    pass


class FFmpegProgressTracker:
    """
    Parses ffmpeg's machine-readable progress output (-progress pipe:1).

    ffmpeg writes blocks of key=value lines, each block terminated by
    progress=continue (or progress=end for the last one):

        frame=180
        out_time_ms=6000000
        speed=1.2x
        progress=continue

    out_time_ms is in microseconds despite its name.
    """

    def __init__(self, total_duration: float):
        self.total_duration = total_duration
        self.current_time = 0.0
        self.start_time = time.time()
        self.speed = 1.0
        self._block = {}

    def feed(self, line: str) -> Optional[dict]:
        """
        Consume one progress line.

        Returns:
            A progress dict when the line closes a block, otherwise None
        """
        if '=' not in line:
            return None
        key, _, value = line.strip().partition('=')
        self._block[key] = value
        if key != 'progress':
            return None

        block, self._block = self._block, {}
        try:
            self.current_time = max(0.0, float(block.get('out_time_ms', '0')) / 1000000.0)
        except (ValueError, TypeError):
            pass

        speed_str = block.get('speed', '').replace('x', '').strip()
        try:
            self.speed = float(speed_str) if speed_str and speed_str != 'N/A' else self.speed
        except ValueError:
            pass

        if self.total_duration > 0:
            fraction = min(1.0, self.current_time / self.total_duration)
        else:
            fraction = 0.0
        if value == 'end':
            fraction = 1.0

        elapsed = time.time() - self.start_time
        remaining = max(0.0, self.total_duration - self.current_time)
        eta_seconds = remaining / self.speed if self.speed > 0 else 0.0

        return {
            'fraction': fraction,
            'current_time': self.current_time,
            'total_duration': self.total_duration,
            'speed': self.speed,
            'elapsed_seconds': elapsed,
            'eta_seconds': eta_seconds,
            'finished': value == 'end',
        }

    @staticmethod
    def format_eta(seconds: float) -> str:
        """Format seconds into human-readable ETA string"""
        if seconds <= 0:
            return "almost done"
        elif seconds < 60:
            return f"{int(seconds)}s"
        elif seconds < 3600:
            minutes = int(seconds // 60)
            secs = int(seconds % 60)
            return f"{minutes}m {secs}s"
        else:
            hours = int(seconds // 3600)
            minutes = int((seconds % 3600) // 60)
            return f"{hours}h {minutes}m"


class FFmpegEncoder:
    """
    Runs an ExportPlan through the ffmpeg binary.

    One encoder instance drives at most one process at a time; abort()
    terminates it and makes the running encode() raise EncoderError.
    """

    def __init__(self, ffmpeg_path: Optional[str] = None, timeout: Optional[float] = None):
        self.ffmpeg_path = ffmpeg_path or settings.FFMPEG_PATH
        self.timeout = timeout or settings.ENCODE_TIMEOUT
        self._process: Optional[asyncio.subprocess.Process] = None
        self._aborted = False

    def build_command(self, plan, input_path: str, output_path: str) -> List[str]:
        args = plan.to_ffmpeg_args(input_path, output_path)
        # Progress goes to stdout as key=value blocks, stats noise is dropped
        return [self.ffmpeg_path, '-progress', 'pipe:1', '-nostats', *args]

    async def encode(
        self,
        plan,
        input_path: str,
        output_path: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        """
        Encode input_path into output_path according to plan.

        Args:
            plan: ExportPlan
            input_path: Source video
            output_path: Destination file
            on_progress: Called with (fraction 0..1, elapsed seconds)

        Returns:
            output_path

        Raises:
            EncoderError: ffmpeg failed, timed out or was aborted
        """
        cmd = self.build_command(plan, input_path, output_path)
        logger.debug(f"Running: {' '.join(cmd)}")
        self._aborted = False

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True
            )
        except OSError as e:
            raise EncoderError(f"Could not start ffmpeg: {e}") from e

        self._process = process
        tracker = FFmpegProgressTracker(plan.duration)
        stderr_lines: List[str] = []

        async def read_stderr():
            """Read stderr for error messages"""
            while True:
                line = await process.stderr.readline()
                if not line:
                    break
                stderr_lines.append(line.decode('utf-8', errors='ignore').strip())
                del stderr_lines[:-STDERR_TAIL_LINES]

        async def read_progress():
            while True:
                line = await process.stdout.readline()
                if not line:
                    break
                info = tracker.feed(line.decode('utf-8', errors='ignore'))
                if info and on_progress:
                    on_progress(info['fraction'], info['elapsed_seconds'])

        stderr_task = asyncio.create_task(read_stderr())
        try:
            await asyncio.wait_for(read_progress(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise EncoderError(f"FFmpeg timed out after {self.timeout} seconds")
        finally:
            await stderr_task
            await process.wait()
            self._process = None

        if self._aborted:
            raise EncoderError("Encoding aborted")
        if process.returncode != 0:
            error_text = '\n'.join(stderr_lines) if stderr_lines else "Unknown error"
            raise EncoderError(f"FFmpeg exited with code {process.returncode}: {error_text}")
        return output_path

    def abort(self) -> None:
        """Stop the running ffmpeg process, if any"""
        self._aborted = True
        process = self._process
        if process is not None and process.returncode is None:
            logger.info("Terminating ffmpeg")
            try:
                process.terminate()
            except ProcessLookupError:
                pass


class FFmpegUtils:

    @staticmethod
    def parse_frame_rate(fps_str: str) -> float:
        """'30000/1001' -> 29.97"""
        try:
            if '/' in fps_str:
                num, den = fps_str.split('/')
                return float(num) / float(den) if float(den) != 0 else 30.0
            return float(fps_str)
        except (ValueError, ZeroDivisionError):
            return 30.0

    @staticmethod
    def get_video_info(video_path: str) -> Optional[dict]:
        """Get duration, resolution, codec and frame rate of the first video stream"""
        try:
            # Use JSON output for reliable field parsing
            cmd = [
                settings.FFPROBE_PATH,
                '-v', 'quiet',
                '-select_streams', 'v:0',
                '-show_entries', 'stream=width,height,codec_name,r_frame_rate:format=duration',
                '-of', 'json',
                video_path
            ]
            # Add timeout to prevent hang on corrupted files
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=30)

            if result.returncode == 0:
                data = json.loads(result.stdout)

                if data.get('streams'):
                    stream = data['streams'][0]
                    fps_val = FFmpegUtils.parse_frame_rate(stream.get('r_frame_rate', '30/1'))
                    try:
                        duration = float(data.get('format', {}).get('duration', 0))
                    except (TypeError, ValueError):
                        duration = 0.0

                    info = {
                        'duration': duration,
                        'width': stream.get('width', 0),
                        'height': stream.get('height', 0),
                        'codec': stream.get('codec_name', 'unknown'),
                        'fps': round(fps_val, 2)
                    }
                    logger.debug(f"Video info: {info}")
                    return info

            logger.warning(f"FFprobe returned no stream data for: {video_path}")
            return None

        except subprocess.TimeoutExpired:
            logger.error(f"Timeout getting video info for: {video_path}")
            return None
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse FFprobe JSON output: {e}")
            return None
        except OSError as e:
            logger.error(f"Error getting video info: {e}")
            return None

    @staticmethod
    def extract_frame(video_path: str, time_seconds: float, output_path: str, width: int = 320) -> bool:
        """
        Write a single JPEG frame of the video, scaled to the given width.

        Args:
            video_path: Source video
            time_seconds: Clip time of the frame
            output_path: Destination .jpg
            width: Output width in pixels; height keeps the aspect ratio

        Returns:
            True if the frame was written
        """
        cmd = [
            settings.FFMPEG_PATH, '-y',
            '-ss', f"{max(0.0, time_seconds):.3f}",
            '-i', video_path,
            '-vframes', '1',
            '-vf', f"scale={width}:-1",
            '-q:v', '2',
            '-f', 'image2',
            output_path
        ]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=30)
        except subprocess.TimeoutExpired:
            logger.error(f"Timeout extracting frame at {time_seconds:.2f}s from: {video_path}")
            return False
        except OSError as e:
            logger.error(f"Error extracting frame: {e}")
            return False

        if result.returncode != 0:
            logger.error(f"Frame extraction failed: {result.stderr.strip()[-500:]}")
            return False
        return True
