"""Shared fixtures for pipeline and API tests."""

from unittest.mock import AsyncMock

import pytest

from modules.anki_integration import AnkiExporter
from modules.rate_limiter import RateLimitedTaskQueue
from stubs import StubLLM, StubSpeech
from utils.pipeline import CardGenerationPipeline


@pytest.fixture
def audio_dir(tmp_path):
    return tmp_path / "audio"


@pytest.fixture
def decks_dir(tmp_path):
    return tmp_path / "decks"


@pytest.fixture
def no_sleep():
    return AsyncMock()


@pytest.fixture
def queue(no_sleep):
    return RateLimitedTaskQueue(
        requests_per_second=100, max_retries=2, initial_backoff=0.5, sleep=no_sleep
    )


@pytest.fixture
def make_pipeline(audio_dir, decks_dir, queue):
    def _make(llm=None, speech=None, exporter=None):
        return CardGenerationPipeline(
            llm=llm or StubLLM(),
            speech=speech or StubSpeech(audio_dir),
            exporter=exporter or AnkiExporter(output_dir=decks_dir),
            queue=queue,
        )

    return _make
