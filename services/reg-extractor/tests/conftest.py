"""Shared test fixtures for reg extractor tests."""

import json
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add parent directory to path so we can import the modules
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def sample_data_url() -> str:
    """A tiny (1x1 PNG) image as a data URL."""
    return (
        "data:image/png;base64,"
        "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
    )


@pytest.fixture
def mock_plate_reply() -> str:
    """Model reply with a single current-format plate."""
    return json.dumps({
        "results": [{"type": "reg", "value": "AB12 CDE", "uncertain": False}],
    })


@pytest.fixture
def mock_mixed_reply() -> str:
    """Model reply with a plate, a VIN and an uncertain plate."""
    return json.dumps({
        "results": [
            {"type": "reg", "value": "AB12 CDE", "uncertain": False},
            {"type": "vin", "value": "1HGCM82633A004352", "uncertain": False},
            {"type": "reg", "value": "ABC 123D", "uncertain": True},
        ],
    })


@pytest.fixture
def mock_fenced_reply() -> str:
    """Model reply wrapped in a markdown code fence with preamble."""
    return 'Here is what I found:\n```json\n{"results": [{"type": "vin", "value": "WVWZZZ1JZXW000001", "uncertain": true}]}\n```'


@pytest.fixture
def mock_client(mock_plate_reply: str) -> MagicMock:
    """Upstream client double answering with a single plate."""
    client = MagicMock()
    client.complete.return_value = mock_plate_reply
    return client
