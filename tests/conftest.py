"""Shared pytest fixtures for the full LiveI18n test suite."""

from __future__ import annotations

import asyncio
import io
from typing import Iterator

import pytest

from livei18n.telemetry.logger import EventLogger
from tests.doubles import FakeClock, LogCapture, ScriptedHTTPClient, SleepRecorder


@pytest.fixture
def fake_clock() -> FakeClock:
    """Provide a deterministic clock starting at zero."""

    return FakeClock()


@pytest.fixture
def log_buffer() -> Iterator[LogCapture]:
    """Provide an event logger writing to an in-memory buffer."""

    buffer = io.StringIO()
    logger = EventLogger(sink=buffer, debug=True)
    yield logger, buffer
    logger.close()


@pytest.fixture
def scripted_http(fake_clock: FakeClock) -> ScriptedHTTPClient:
    """Provide a scripted transport sharing the fake clock."""

    return ScriptedHTTPClient(fake_clock)


@pytest.fixture
def recorded_sleeps(fake_clock: FakeClock) -> SleepRecorder:
    """Provide an async sleeper that records delays and advances the fake clock."""

    sleeps: list[float] = []

    async def _sleep(seconds: float) -> None:
        """Record the requested delay and move fake time forward without waiting."""

        sleeps.append(seconds)
        fake_clock.advance(round(seconds * 1000))
        await asyncio.sleep(0)

    return sleeps, _sleep
