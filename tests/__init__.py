"""
Titan Editor Test Suite

Tests for:
- Trim window and playhead arithmetic
- Overlay registry, undo/redo and timeline gestures
- Geometry and hit-testing
- Export compilation, lifecycle and the ffmpeg adapter
- HTTP API endpoints

Run tests with:
    pytest tests/ -v

Run without ffmpeg:
    pytest tests/ -v --skip-integration
"""
