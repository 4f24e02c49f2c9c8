"""Service connecting the HTTP layer to the card generation pipeline."""

import logging
from functools import lru_cache

from backend.schemas import (
    ApkgFile,
    CardResponse,
    GenerateCardsRequest,
    GenerateCardsResponse,
    InputRequest,
    PreviewCardResponse,
    ReviewInputsResponse,
)
from modules.card_generation import AudioCard, FlashCard
from utils.pipeline import CardGenerationPipeline

logger = logging.getLogger(__name__)


@lru_cache
def get_pipeline() -> CardGenerationPipeline:
    """Dependency that provides the process-wide pipeline."""
    return CardGenerationPipeline.from_settings()


def to_card_response(card: FlashCard) -> CardResponse:
    """Convert a pipeline card to its API schema."""
    audio_path = card.audio_path if isinstance(card, AudioCard) else None
    return CardResponse(id=card.id, front=card.front, back=card.back, audio_path=audio_path)


async def generate_cards(
    pipeline: CardGenerationPipeline, request: GenerateCardsRequest
) -> GenerateCardsResponse:
    """Generate decks for a request."""
    logger.info(
        f"Processing cards generation request: deck={request.deck_name!r}, "
        f"{request.source_language} -> {request.target_language}"
    )
    result = await pipeline.generate(
        deck_name=request.deck_name,
        words=request.words,
        source_language=request.source_language,
        target_language=request.target_language,
        include_reversed=request.include_reversed_cards,
    )
    return GenerateCardsResponse(
        message=result.message,
        cards=[to_card_response(card) for card in result.cards],
        apkg_files=[ApkgFile(name=deck.name, content=deck.content) for deck in result.decks],
    )


async def preview_card(
    pipeline: CardGenerationPipeline, request: InputRequest
) -> PreviewCardResponse:
    """Preview the card for the first input line."""
    card = await pipeline.preview(request.input, request.source_language, request.target_language)
    return PreviewCardResponse(card=to_card_response(card) if card else None)


async def review_inputs(
    pipeline: CardGenerationPipeline, request: InputRequest
) -> ReviewInputsResponse:
    """Get the model's feedback on the user's input lines."""
    feedback = await pipeline.review(request.input, request.source_language, request.target_language)
    return ReviewInputsResponse(feedback=feedback)
