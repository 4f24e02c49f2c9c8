"""Main API router that aggregates all v1 endpoints."""

from fastapi import APIRouter

from backend.api.v1 import cards

api_router = APIRouter()

api_router.include_router(cards.router, tags=["cards"])
