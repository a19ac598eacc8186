#!/usr/bin/env python3
"""
Pytest Configuration and Shared Fixtures

Provides shared fixtures and configuration for all tests.
"""

import pytest
import tempfile
import sys
import os
from pathlib import Path

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.editor import Editor
from core.preferences import PreferenceStore
from models.video import VideoSource


# ============================================================================
# ASYNCIO CONFIGURATION
# ============================================================================
# Note: pytest-asyncio is configured with asyncio_mode = "auto" in pyproject.toml
# The event loop is automatically managed per-function by default


# ============================================================================
# TEMPORARY DIRECTORIES
# ============================================================================

@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_video_file(temp_dir):
    """A small file with a video extension (content is never decoded)"""
    path = temp_dir / "clip.mp4"
    path.write_bytes(b"\x00" * 1024)
    return path


# ============================================================================
# EDITOR FIXTURES
# ============================================================================

@pytest.fixture
def sample_video():
    """A 60 second 1080p clip"""
    return VideoSource(
        name="clip.mp4",
        duration=60.0,
        width=1920,
        height=1080,
        size_bytes=10 * 1024 * 1024,
    )


@pytest.fixture
def preference_store(temp_dir):
    return PreferenceStore(str(temp_dir / "preferences.json"))


@pytest.fixture
def editor(sample_video, preference_store):
    """Editor with the sample clip loaded"""
    ed = Editor(preferences=preference_store)
    ed.load_video(sample_video)
    return ed


@pytest.fixture
def state(editor):
    return editor.state


class FakeEncoder:
    """
    Encoder stand-in for export tests.

    Reports the configured progress fractions, then either returns the
    output path or raises the configured error.
    """

    def __init__(self, fractions=(0.25, 0.5, 1.0), error=None):
        self.fractions = fractions
        self.error = error
        self.calls = []
        self.aborted = False
        self.on_progress = None

    async def encode(self, plan, input_path, output_path, on_progress=None):
        self.calls.append((plan, input_path, output_path))
        self.on_progress = on_progress
        for i, fraction in enumerate(self.fractions):
            if on_progress:
                on_progress(fraction, float(i + 1))
        if self.error is not None:
            raise self.error
        return output_path

    def abort(self):
        self.aborted = True


@pytest.fixture
def fake_encoder():
    return FakeEncoder()


# ============================================================================
# FASTAPI TEST CLIENT FIXTURES
# ============================================================================

@pytest.fixture
def app():
    """Create FastAPI application for testing"""
    from web_ui.api.main import app
    return app


@pytest.fixture
def client(app):
    """Create synchronous test client"""
    from fastapi.testclient import TestClient
    return TestClient(app)


# ============================================================================
# PYTEST CONFIGURATION
# ============================================================================

def pytest_configure(config):
    """Configure pytest markers"""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (need ffmpeg installed)"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection based on markers"""
    # Check if we should skip integration tests
    if config.getoption("--skip-integration", default=False):
        skip_integration = pytest.mark.skip(reason="--skip-integration option provided")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)


def pytest_addoption(parser):
    """Add custom command line options"""
    parser.addoption(
        "--skip-integration",
        action="store_true",
        default=False,
        help="Skip integration tests"
    )
