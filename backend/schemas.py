"""Pydantic schemas for API request/response validation."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema exchanging camelCase JSON keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Generation schemas
class GenerateCardsRequest(CamelModel):
    """Schema for a full deck generation request."""
    deck_name: str
    words: str
    target_language: str
    source_language: str
    include_reversed_cards: bool = False


class CardResponse(CamelModel):
    """Schema for a generated card."""
    id: str
    front: str
    back: str
    audio_path: str | None = None


class ApkgFile(CamelModel):
    """Schema for a base64-encoded deck file."""
    name: str
    content: str


class GenerateCardsResponse(CamelModel):
    """Schema for a deck generation response."""
    message: str
    cards: list[CardResponse]
    apkg_files: list[ApkgFile]


# Preview and review schemas
class InputRequest(CamelModel):
    """Schema for requests that carry raw user input."""
    input: str
    target_language: str
    source_language: str


class PreviewCardResponse(CamelModel):
    """Schema for a single previewed card."""
    card: CardResponse | None = None


class ReviewInputsResponse(CamelModel):
    """Schema for the model's feedback on user input."""
    feedback: str


class ErrorDetail(CamelModel):
    """Schema for error details returned by the API."""
    error: str
    code: str | None = None
