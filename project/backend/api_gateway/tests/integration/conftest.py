"""
Pytest configuration for integration tests.
"""

import os

import pytest


@pytest.fixture
def live_api_key():
    """Real Gemini API key (requires GEMINI_API_KEY)."""
    api_key = os.getenv("GEMINI_API_KEY")
    if not api_key:
        pytest.skip("GEMINI_API_KEY not set - skipping live API tests")
    return api_key
