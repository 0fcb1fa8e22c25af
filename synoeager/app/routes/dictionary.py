"""Dictionary endpoints.

This module provides:
- /api/lookup - Dictionary entry with bilingual examples and synonyms
- /api/connotation - Connotation guidance for one synonym of a headword sense

Both routes accept every method so the orchestrator can answer OPTIONS with
204 and anything other than GET with a JSON 405.
"""
from fastapi import APIRouter, Request
from fastapi.responses import Response

from synoeager.app.services import (
    CONNOTATION_ENDPOINT,
    LOOKUP_ENDPOINT,
    handle_llm_request,
)

router = APIRouter(tags=["Dictionary"])

_ALL_METHODS = ["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"]


@router.api_route("/api/lookup", methods=_ALL_METHODS)
async def lookup(request: Request) -> Response:
    """Look up a word: `GET /api/lookup?word=bright`."""
    return await handle_llm_request(request, LOOKUP_ENDPOINT)


@router.api_route("/api/connotation", methods=_ALL_METHODS)
async def connotation(request: Request) -> Response:
    """Connotation of a synonym within one sense of a headword."""
    return await handle_llm_request(request, CONNOTATION_ENDPOINT)
