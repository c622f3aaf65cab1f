"""
Shared pytest fixtures for voice-to-task pipeline tests.
"""

import io
import wave
from datetime import datetime, timezone

import pytest

from voice_pipeline.config.settings import reset_settings
from voice_pipeline.models.household import (
    ChildProfile,
    HouseholdContext,
    MemberWorkload,
    ParentProfile,
    WorkloadSnapshot
)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Keep global settings and provider keys isolated between tests."""
    for name in ('OPENAI_API_KEY', 'DEEPGRAM_API_KEY', 'ENABLE_CONFIRMATION_LEDGER'):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def household():
    """Fixture providing a household with two children and two parents."""
    return HouseholdContext(
        household_id='household-123',
        children=(
            ChildProfile(id='child-lucas', name='Lucas', nicknames=('Lulu', 'Lou'), age=7),
            ChildProfile(id='child-emma', name='Emma', nicknames=('Mimi',), age=4),
        ),
        parents=(
            ParentProfile(id='parent-sophie', name='Sophie', role='mother'),
            ParentProfile(id='parent-thomas', name='Thomas', role='father'),
        )
    )


@pytest.fixture
def workloads():
    """Fixture providing a workload snapshot where Thomas carries less."""
    return WorkloadSnapshot(members=(
        MemberWorkload('parent-sophie', current_load=12.0),
        MemberWorkload('parent-thomas', current_load=5.0),
    ))


@pytest.fixture
def reference_date():
    """Fixture providing a fixed reference date (Wednesday)."""
    return datetime(2024, 3, 13, 9, 30, tzinfo=timezone.utc)


def make_wav_bytes(duration_seconds: float, sample_rate: int = 16000) -> bytes:
    """Build a silent 16-bit mono WAV of the given duration."""
    buffer = io.BytesIO()
    with wave.open(buffer, 'wb') as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(b'\x00\x00' * int(duration_seconds * sample_rate))
    return buffer.getvalue()


@pytest.fixture
def wav_bytes():
    """Fixture providing two seconds of silent WAV audio."""
    return make_wav_bytes(2.0)


@pytest.fixture
def wav_factory():
    """Fixture providing a builder for silent WAV audio of any duration."""
    return make_wav_bytes
