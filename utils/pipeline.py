"""
Pipeline Module
-------------
Coordinates the flashcard generation process: prompt, completion, parsing,
rate-limited audio synthesis, deck packaging and cleanup.
"""

import asyncio
import base64
import logging
import os
import time
from dataclasses import dataclass, field

from config.settings import DEFAULT_LLM_PROVIDER, GENERATION_CONFIG, TTS_RATE_LIMIT
from modules.anki_integration import AnkiExporter, DeckFile
from modules.card_generation import (
    AudioCard,
    FlashCard,
    build_generation_prompt,
    build_review_prompt,
    normalize_words,
    parse_cards,
)
from modules.llm_interface import LLMError, LLMInterface
from modules.rate_limiter import RateLimitedTaskQueue, RateLimitError
from modules.speech_synthesis import AzureTTSClient

logger = logging.getLogger(__name__)

RATE_LIMIT_CODE = "AZURE_TTS_RATE_LIMIT"


class PipelineError(Exception):
    """Base class for failures that abort a pipeline request."""
    code: str | None = None


class InvalidInputError(PipelineError):
    """The request carried no usable input lines."""


class UpstreamModelError(PipelineError):
    """The language model call failed."""


class RateLimitExceededError(PipelineError):
    """Audio synthesis exhausted its retry budget on rate-limit responses."""
    code = RATE_LIMIT_CODE


class AudioSynthesisFailedError(PipelineError):
    """Audio synthesis failed for a reason other than rate limiting."""


class PackagingError(PipelineError):
    """The deck could not be assembled or read back."""


@dataclass
class EncodedDeck:
    """A deck file read into memory and base64-encoded for transport."""
    name: str
    content: str


@dataclass
class GenerationResult:
    message: str
    cards: list[AudioCard] = field(default_factory=list)
    decks: list[EncodedDeck] = field(default_factory=list)


def remove_files(paths: list[str]) -> int:
    """
    Delete files, logging and skipping any that cannot be removed.

    Returns:
        Number of files actually removed
    """
    removed = 0
    for path in paths:
        try:
            os.remove(path)
            removed += 1
        except OSError as e:
            logger.warning(f"Failed to delete {path}: {e}")
    return removed


class CardGenerationPipeline:
    """Main pipeline for turning a word list into Anki decks with audio."""

    def __init__(
        self,
        llm: LLMInterface,
        speech: AzureTTSClient,
        exporter: AnkiExporter,
        queue: RateLimitedTaskQueue,
    ):
        """
        Initialize the pipeline.

        Args:
            llm: Language model adapter
            speech: Speech synthesis adapter
            exporter: Deck packager
            queue: Rate-limited queue all synthesis calls go through
        """
        self.llm = llm
        self.speech = speech
        self.exporter = exporter
        self.queue = queue

    @classmethod
    def from_settings(cls, llm_provider: str = DEFAULT_LLM_PROVIDER) -> "CardGenerationPipeline":
        """Build a pipeline wired to the configured external services."""
        queue = RateLimitedTaskQueue(
            requests_per_second=TTS_RATE_LIMIT["requests_per_second"],
            max_retries=TTS_RATE_LIMIT["max_retries"],
            initial_backoff=TTS_RATE_LIMIT["initial_backoff_ms"] / 1000,
        )
        pipeline = cls(
            llm=LLMInterface(provider=llm_provider),
            speech=AzureTTSClient(),
            exporter=AnkiExporter(),
            queue=queue,
        )
        logger.info(
            f"Initialized pipeline with provider: {llm_provider}, "
            f"TTS rate: {TTS_RATE_LIMIT['requests_per_second']}/s"
        )
        return pipeline

    async def _complete(self, prompt: str, operation: str) -> str:
        params = GENERATION_CONFIG[operation]
        try:
            return await self.llm.complete(
                prompt,
                max_tokens=params["max_tokens"],
                temperature=params["temperature"],
            )
        except LLMError as e:
            logger.error(f"Language model call failed during {operation}: {e}")
            raise UpstreamModelError(f"Language model call failed: {e}") from e

    async def _synthesize_all(self, cards: list[FlashCard], language: str) -> list[AudioCard]:
        """Fan synthesis out through the queue and wait for every card."""

        def task_for(card: FlashCard):
            return lambda: self.speech.synthesize(card.back, card.id, language)

        futures = [self.queue.submit(task_for(card)) for card in cards]
        outcomes = await asyncio.gather(*futures, return_exceptions=True)

        audio_cards = []
        failures = []
        for card, outcome in zip(cards, outcomes):
            if isinstance(outcome, BaseException):
                failures.append(outcome)
            else:
                audio_cards.append(AudioCard(card, outcome))

        if failures:
            remove_files([card.audio_path for card in audio_cards])
            rate_limited = [e for e in failures if isinstance(e, RateLimitError)]
            if rate_limited:
                logger.error(f"Audio synthesis rate limited for {len(rate_limited)} card(s)")
                raise RateLimitExceededError(
                    "Text-to-speech rate limit exceeded, please try again later"
                ) from rate_limited[0]
            logger.error(f"Audio synthesis failed for {len(failures)} card(s): {failures[0]}")
            raise AudioSynthesisFailedError(f"Audio synthesis failed: {failures[0]}") from failures[0]

        return audio_cards

    async def _package(
        self, cards: list[AudioCard], deck_name: str, include_reversed: bool
    ) -> list[EncodedDeck]:
        try:
            deck_files: list[DeckFile] = await asyncio.to_thread(
                self.exporter.package, cards, deck_name, include_reversed
            )
        except Exception as e:
            logger.exception(f"Failed to package deck '{deck_name}'")
            raise PackagingError(f"Failed to package deck: {e}") from e

        encoded = []
        try:
            for deck_file in deck_files:
                data = await asyncio.to_thread(deck_file.path.read_bytes)
                encoded.append(
                    EncodedDeck(name=deck_file.name, content=base64.b64encode(data).decode("ascii"))
                )
        except OSError as e:
            raise PackagingError(f"Failed to read packaged deck: {e}") from e
        finally:
            remove_files([str(deck_file.path) for deck_file in deck_files])

        return encoded

    async def generate(
        self,
        deck_name: str,
        words: str,
        source_language: str,
        target_language: str,
        include_reversed: bool = False,
    ) -> GenerationResult:
        """
        Run the full pipeline for one request.

        Args:
            deck_name: Title of the deck to create
            words: Newline-separated words or phrases
            source_language: Language the words are written in
            target_language: Language to translate into
            include_reversed: Also produce a reversed deck

        Returns:
            GenerationResult with the cards and base64-encoded decks

        Raises:
            UpstreamModelError: The language model call failed
            RateLimitExceededError: Audio synthesis ran out of retries
            AudioSynthesisFailedError: Audio synthesis failed otherwise
            PackagingError: The deck could not be written or read back
        """
        start_time = time.time()
        word_list = normalize_words(words)
        logger.info(
            f"Generating deck '{deck_name}' from {len(word_list)} words "
            f"({source_language} -> {target_language}, reversed={include_reversed})"
        )

        # Step 1: One completion for the whole word list
        prompt = build_generation_prompt(word_list, source_language, target_language)
        reply = await self._complete(prompt, "generate")
        logger.debug(f"Generated response: {reply}")

        # Step 2: Parse the reply into cards
        cards = parse_cards(reply).cards

        # Step 3: Synthesize audio for every card
        audio_cards = await self._synthesize_all(cards, target_language)

        # Step 4: Package and clean up the audio, whatever happens
        try:
            decks = await self._package(audio_cards, deck_name, include_reversed)
        finally:
            remove_files([card.audio_path for card in audio_cards])

        elapsed_time = time.time() - start_time
        logger.info(f"Pipeline completed in {elapsed_time:.2f} seconds")

        return GenerationResult(
            message=f"Successfully generated {len(audio_cards)} flashcards",
            cards=audio_cards,
            decks=decks,
        )

    async def preview(
        self, text: str, source_language: str, target_language: str
    ) -> FlashCard | None:
        """Generate a single card for the first input line, without audio."""
        lines = normalize_words(text)
        if not lines:
            raise InvalidInputError("No input to preview")

        prompt = build_generation_prompt(lines[:1], source_language, target_language)
        reply = await self._complete(prompt, "preview")
        cards = parse_cards(reply).cards
        if not cards:
            logger.warning(f"Model reply for preview of {lines[0]!r} had no card")
            return None
        return cards[0]

    async def review(self, text: str, source_language: str, target_language: str) -> str:
        """
        Ask the model to flag input lines that will not make good cards.

        The feedback is returned as the model wrote it. Only surrounding
        whitespace is removed, by the LLM adapter; inner line breaks and
        indentation are kept.
        """
        lines = normalize_words(text)
        if not lines:
            raise InvalidInputError("No input to review")

        prompt = build_review_prompt(lines, source_language, target_language)
        return await self._complete(prompt, "review")
