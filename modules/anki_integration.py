"""
Anki Integration Module
---------------------
Packages cards and their audio into importable Anki decks (.apkg).
"""

import hashlib
import logging
import os
from dataclasses import dataclass
from pathlib import Path

import genanki

from config.settings import ANKI_CONFIG, DECKS_DIR, sanitize_filename
from modules.card_generation import AudioCard

logger = logging.getLogger(__name__)

CARD_CSS = """
.card {
    font-family: arial;
    font-size: 22px;
    text-align: center;
    color: black;
    background-color: white;
}
"""


@dataclass
class DeckFile:
    """A packaged deck on disk."""
    name: str
    path: Path


def stable_id(name: str) -> int:
    """Derive a deterministic Anki id from a name."""
    digest = hashlib.sha1(name.encode("utf-8")).hexdigest()
    return (1 << 30) + int(digest[:8], 16) % (1 << 30)


class AnkiExporter:
    """Exports flashcards with audio to Anki packages."""

    def __init__(self, output_dir: str | Path = DECKS_DIR, config: dict | None = None):
        """
        Initialize the Anki exporter.

        Args:
            output_dir: Directory the .apkg files are written to
            config: Configuration for the exporter (or None to use default)
        """
        self.output_dir = Path(output_dir)
        self.config = config or ANKI_CONFIG
        self.model = genanki.Model(
            stable_id(self.config["model_name"]),
            self.config["model_name"],
            fields=[{"name": "Front"}, {"name": "Back"}],
            templates=[
                {
                    "name": "Card 1",
                    "qfmt": "{{Front}}",
                    "afmt": '{{FrontSide}}<hr id="answer">{{Back}}',
                }
            ],
            css=CARD_CSS,
        )

    def _build_deck(self, cards: list[AudioCard], deck_name: str, reversed_: bool) -> genanki.Deck:
        deck = genanki.Deck(stable_id(deck_name), deck_name)
        tags = self.config.get("default_tags", [])

        for card in cards:
            sound = f"[sound:{os.path.basename(card.audio_path)}]"
            if reversed_:
                fields = [f"{card.back}<br>{sound}", card.front]
            else:
                fields = [card.front, f"{card.back}<br>{sound}"]

            deck.add_note(
                genanki.Note(
                    model=self.model,
                    fields=fields,
                    tags=tags,
                    guid=genanki.guid_for(deck_name, card.id),
                )
            )

        return deck

    def _write(self, deck: genanki.Deck, media_files: list[str], filename: str) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        file_path = self.output_dir / filename
        try:
            genanki.Package(deck, media_files=media_files).write_to_file(str(file_path))
        except Exception:
            file_path.unlink(missing_ok=True)
            raise
        return file_path

    def package(
        self,
        cards: list[AudioCard],
        deck_name: str,
        include_reversed: bool = False,
    ) -> list[DeckFile]:
        """
        Write the deck, and optionally a reversed copy, to the output directory.

        An empty card list produces a valid, empty deck.

        Args:
            cards: Cards with synthesized audio
            deck_name: Deck title shown in Anki
            include_reversed: Also write a deck quizzing target to source

        Returns:
            The written deck files, forward deck first
        """
        media_files = [card.audio_path for card in cards]
        stem = sanitize_filename(deck_name)

        logger.info(f"Packaging {len(cards)} cards into deck '{deck_name}'")
        decks: list[DeckFile] = []
        try:
            forward = self._build_deck(cards, deck_name, reversed_=False)
            filename = f"{stem}.apkg"
            decks.append(DeckFile(name=filename, path=self._write(forward, media_files, filename)))

            if include_reversed:
                reversed_name = f"{deck_name}{self.config['reversed_suffix']}"
                backward = self._build_deck(cards, reversed_name, reversed_=True)
                filename = f"{stem}_reversed.apkg"
                decks.append(DeckFile(name=filename, path=self._write(backward, media_files, filename)))
        except Exception:
            # no deck survives a failed package call
            for deck_file in decks:
                try:
                    deck_file.path.unlink(missing_ok=True)
                except OSError as e:
                    logger.warning(f"Could not remove partial deck {deck_file.path}: {e}")
            raise

        logger.info(f"Wrote {len(decks)} deck file(s) for '{deck_name}'")
        return decks
