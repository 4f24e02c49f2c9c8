"""
Card Generation Module
---------------------
Flashcard models, word-list normalization, prompt building and parsing of the
line-oriented model reply.
"""

import logging
import uuid
from dataclasses import dataclass, field

from config.prompts import FIELD_SEPARATOR, GENERATION_PROMPT, REVIEW_PROMPT

logger = logging.getLogger(__name__)


class FlashCard:
    """Represents a single flashcard."""

    def __init__(self, front: str, back: str, card_id: str | None = None):
        """
        Initialize a flashcard.

        Args:
            front: Word and example sentence in the source language
            back: Translation and translated sentence in the target language
            card_id: Unique identifier, generated when not given
        """
        self.id = card_id or str(uuid.uuid4())
        self.front = front
        self.back = back

    def __repr__(self) -> str:
        return f"FlashCard(id={self.id!r}, front={self.front!r}, back={self.back!r})"

    def to_dict(self) -> dict:
        """
        Convert the flashcard to a dictionary.

        Returns:
            Dictionary representation of the flashcard
        """
        return {"id": self.id, "front": self.front, "back": self.back}

    @classmethod
    def from_dict(cls, data: dict) -> "FlashCard":
        """
        Create a flashcard from a dictionary.

        Args:
            data: Dictionary representation of a flashcard

        Returns:
            FlashCard instance
        """
        return cls(
            front=data.get("front", ""),
            back=data.get("back", ""),
            card_id=data.get("id"),
        )


class AudioCard(FlashCard):
    """A flashcard whose back side has been synthesized to an audio file."""

    def __init__(self, card: FlashCard, audio_path: str):
        super().__init__(front=card.front, back=card.back, card_id=card.id)
        self.audio_path = audio_path

    def __repr__(self) -> str:
        return f"AudioCard(id={self.id!r}, audio_path={self.audio_path!r})"

    def to_dict(self) -> dict:
        return {**super().to_dict(), "audio_path": self.audio_path}


@dataclass
class ParseResult:
    """Cards extracted from a model reply plus the number of discarded lines."""
    cards: list[FlashCard] = field(default_factory=list)
    dropped: int = 0


def normalize_words(words: str) -> list[str]:
    """Split a newline-separated word list, trimming and dropping empty lines."""
    return [word.strip() for word in words.split("\n") if word.strip()]


def parse_cards(raw_text: str) -> ParseResult:
    """
    Parse a model reply into flashcards.

    Each non-empty line is split on the first ``;`` into front and back.
    Lines without a separator, or with an empty side, are skipped rather than
    raising; any further ``;`` characters stay in the back field.

    Args:
        raw_text: The raw completion text

    Returns:
        ParseResult with the cards in line order and the dropped-line count
    """
    result = ParseResult()

    for line in raw_text.split("\n"):
        line = line.strip()
        if not line:
            continue

        if FIELD_SEPARATOR not in line:
            logger.debug(f"Skipping line without separator: {line!r}")
            result.dropped += 1
            continue

        front, back = line.split(FIELD_SEPARATOR, 1)
        front, back = front.strip(), back.strip()
        if not front or not back:
            logger.debug(f"Skipping line with an empty side: {line!r}")
            result.dropped += 1
            continue

        result.cards.append(FlashCard(front=front, back=back))

    if result.dropped:
        logger.info(f"Parsed {len(result.cards)} cards, dropped {result.dropped} lines")
    return result


def build_generation_prompt(
    words: list[str], source_language: str, target_language: str
) -> str:
    """Create the card generation prompt for a normalized word list."""
    return GENERATION_PROMPT.render(
        source_language=source_language,
        target_language=target_language,
        words="\n".join(words),
    )


def build_review_prompt(
    lines: list[str], source_language: str, target_language: str
) -> str:
    """Create the prompt asking the model to flag unsupported input lines."""
    return REVIEW_PROMPT.render(
        source_language=source_language,
        target_language=target_language,
        lines="\n".join(lines),
    )
