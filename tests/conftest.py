"""
Pytest configuration and fixtures for the word bubble tests.
Small synthetic embedding assets keep every test fast and deterministic.
"""

import os
import sys
import tempfile

import pytest

# Add parent directory to path for imports
sys.path.append(os.path.dirname(os.path.dirname(__file__)))
sys.path.append(os.path.dirname(__file__))

from config import OUTPUT_CONFIG
from test_data_loader import TestDataLoader


@pytest.fixture(autouse=True)
def quiet_output(monkeypatch):
    """Silence progress output and restore the config after each test."""
    monkeypatch.setitem(OUTPUT_CONFIG, "verbose", False)
    monkeypatch.setitem(OUTPUT_CONFIG, "timing_info", False)


@pytest.fixture
def fruit_assets():
    """Fixture providing in-memory assets with three semantic groups."""
    return TestDataLoader.build_assets()


@pytest.fixture
def asset_files():
    """Fixture that writes the synthetic assets to disk and cleans them up."""
    with tempfile.TemporaryDirectory(prefix="word_bubbles_") as tmp_dir:
        yield TestDataLoader.write_asset_files(tmp_dir)


@pytest.fixture
def temp_output_file():
    """Fixture that provides a temporary output file path and cleans it up after test."""
    with tempfile.NamedTemporaryFile(suffix=".json", delete=False) as tmp_file:
        output_path = tmp_file.name

    yield output_path

    # Cleanup
    if os.path.exists(output_path):
        os.unlink(output_path)


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "cli: marks tests as CLI functionality tests")
