"""
Pytest configuration and fixtures.
"""

import pytest


@pytest.fixture
def test_env_file(tmp_path):
    """Create a temporary .env file for testing."""
    env_file = tmp_path / ".env"
    env_content = """
GEMINI_API_KEY=test-gemini-key
ANALYSIS_MODEL=gemini-test
POLL_INTERVAL_SECONDS=0.5
ENVIRONMENT=test
LOG_LEVEL=DEBUG
"""
    env_file.write_text(env_content)
    return env_file


@pytest.fixture
def mp4_header():
    """Leading bytes of an ISO base media file."""
    return b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 64
