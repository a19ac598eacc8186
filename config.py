"""Configuration management using Pydantic settings"""

import platform
import os
import sys
import shutil
from pathlib import Path
from pydantic_settings import BaseSettings
from typing import Optional


# App settings directory (in user's home config directory)
def get_app_config_dir() -> Path:
    """Get the OS-specific config directory for Titan Editor"""
    system = platform.system()
    home = Path.home()

    if system == "Darwin":  # macOS
        return home / "Library" / "Application Support" / "TitanEditor"
    elif system == "Windows":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata) / "TitanEditor"
        return home / "AppData" / "Roaming" / "TitanEditor"
    else:  # Linux
        xdg_config = os.environ.get("XDG_CONFIG_HOME")
        if xdg_config:
            return Path(xdg_config) / "titan-editor"
        return home / ".config" / "titan-editor"


def get_default_storage_path() -> str:
    """
    Get OS-specific default storage path for exports and staged inputs.

    Returns:
        - macOS: ~/Library/Application Support/TitanEditor
        - Linux: ~/.local/share/titan-editor
        - Windows: %APPDATA%/TitanEditor
    """
    system = platform.system()
    home = Path.home()

    if system == "Darwin":
        return str(home / "Library" / "Application Support" / "TitanEditor")
    elif system == "Windows":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return str(Path(appdata) / "TitanEditor")
        return str(home / "AppData" / "Roaming" / "TitanEditor")
    else:
        # Follow XDG Base Directory specification
        xdg_data = os.environ.get("XDG_DATA_HOME")
        if xdg_data:
            return str(Path(xdg_data) / "titan-editor")
        return str(home / ".local" / "share" / "titan-editor")


def get_ffmpeg_paths() -> tuple[str, str]:
    """
    Locate ffmpeg/ffprobe binaries.

    Returns:
        Tuple of (ffmpeg_path, ffprobe_path); bare command names when
        nothing is found on PATH
    """
    system = platform.system()
    ffmpeg_name = "ffmpeg.exe" if system == "Windows" else "ffmpeg"
    ffprobe_name = "ffprobe.exe" if system == "Windows" else "ffprobe"

    # When running from a PyInstaller bundle
    if getattr(sys, 'frozen', False):
        bundle_vendor = Path(sys._MEIPASS) / "vendor" / "ffmpeg" / "bin"
        ffmpeg = bundle_vendor / ffmpeg_name
        ffprobe = bundle_vendor / ffprobe_name
        if ffmpeg.exists() and ffprobe.exists():
            return str(ffmpeg), str(ffprobe)

    ffmpeg_system = shutil.which("ffmpeg")
    ffprobe_system = shutil.which("ffprobe")
    if ffmpeg_system and ffprobe_system:
        return ffmpeg_system, ffprobe_system

    # Default to command names (will fail if not in PATH)
    return "ffmpeg", "ffprobe"


class Settings(BaseSettings):
    """Application settings"""

    # Storage paths
    STORAGE_DIR: str = get_default_storage_path()
    TEMP_DIR: Optional[str] = None
    OUTPUT_DIR: Optional[str] = None

    # Where the persisted editor preferences live
    PREFERENCES_FILE: str = str(get_app_config_dir() / "editor_preferences.json")

    # FFmpeg settings
    _ffmpeg_paths = get_ffmpeg_paths()
    FFMPEG_PATH: str = _ffmpeg_paths[0]
    FFPROBE_PATH: str = _ffmpeg_paths[1]
    DEFAULT_FONT_FILE: str = "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"
    ENCODER_PRESET: str = "fast"
    ENCODE_TIMEOUT: int = 1800

    # Input validation
    MAX_UPLOAD_BYTES: int = 500 * 1024 * 1024

    # Editor behaviour
    MAX_HISTORY: int = 50
    MIN_TRIM_WINDOW: float = 0.1
    DEFAULT_OVERLAY_DURATION: float = 5.0
    # Font sizes are authored against a 1920px wide canvas
    FONT_SCALE_BASELINE_WIDTH: int = 1920

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True

    def model_post_init(self, __context) -> None:
        """Initialize derived paths after model creation"""
        storage = Path(self.STORAGE_DIR)

        # Only set if not explicitly configured via env
        if self.TEMP_DIR is None:
            object.__setattr__(self, 'TEMP_DIR', str(storage / "temp"))
        if self.OUTPUT_DIR is None:
            object.__setattr__(self, 'OUTPUT_DIR', str(storage / "output"))

    def create_directories(self):
        """Create necessary directories"""
        for dir_path in [self.STORAGE_DIR, self.TEMP_DIR, self.OUTPUT_DIR]:
            if dir_path:
                Path(dir_path).mkdir(parents=True, exist_ok=True)


# Global settings instance
settings = Settings()
