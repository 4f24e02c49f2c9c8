"""Card generation API endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from backend.schemas import (
    ErrorDetail,
    GenerateCardsRequest,
    GenerateCardsResponse,
    InputRequest,
    PreviewCardResponse,
    ReviewInputsResponse,
)
from backend.services.card_service import (
    generate_cards,
    get_pipeline,
    preview_card,
    review_inputs,
)
from utils.pipeline import (
    CardGenerationPipeline,
    InvalidInputError,
    PipelineError,
    RateLimitExceededError,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def to_http_exception(error: PipelineError) -> HTTPException:
    """Map a pipeline failure to the status code the client expects."""
    if isinstance(error, RateLimitExceededError):
        status_code, detail = 429, ErrorDetail(error=str(error), code=error.code)
    elif isinstance(error, InvalidInputError):
        status_code, detail = 400, ErrorDetail(error=str(error))
    else:
        status_code, detail = 500, ErrorDetail(error="Internal server error")
    return HTTPException(status_code=status_code, detail=detail.model_dump(exclude_none=True))


@router.post("/generate-cards", response_model=GenerateCardsResponse)
async def generate_cards_endpoint(
    request: GenerateCardsRequest,
    pipeline: CardGenerationPipeline = Depends(get_pipeline),
):
    """Generate Anki decks with audio from a word list."""
    try:
        return await generate_cards(pipeline, request)
    except PipelineError as e:
        logger.error(f"Error processing generate cards request: {e}")
        raise to_http_exception(e)


@router.post("/preview-card", response_model=PreviewCardResponse)
async def preview_card_endpoint(
    request: InputRequest,
    pipeline: CardGenerationPipeline = Depends(get_pipeline),
):
    """Preview the card the first input line would produce."""
    try:
        return await preview_card(pipeline, request)
    except PipelineError as e:
        logger.error(f"Error processing preview card request: {e}")
        raise to_http_exception(e)


@router.post("/review-inputs", response_model=ReviewInputsResponse)
async def review_inputs_endpoint(
    request: InputRequest,
    pipeline: CardGenerationPipeline = Depends(get_pipeline),
):
    """Ask the model which input lines need fixing."""
    try:
        return await review_inputs(pipeline, request)
    except PipelineError as e:
        logger.error(f"Error processing review inputs request: {e}")
        raise to_http_exception(e)
