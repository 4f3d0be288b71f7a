import os
import sys
import asyncio

import pytest

# Ensure project root is on sys.path for imports like 'from signal_relay import ...'
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from signal_relay.signals.models import RawMessage  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_logs(tmp_path, monkeypatch):
    """Keep structured log files out of the working tree."""
    monkeypatch.setenv("RELAY_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")


@pytest.fixture
def make_message():
    def _make(**overrides):
        fields = {
            "id": "m1",
            "platform": "telegram",
            "channel_id": "c1",
            "channel_name": "alpha calls",
            "message_id": "900",
            "author_nickname": "Trader Joe",
            "message_content": "",
            "signal": None,
            "analysis": "",
            "timestamp": 1700000000,
        }
        fields.update(overrides)
        return RawMessage(**fields)
    return _make
