"""Request/Response schemas for Syno-Eager.

This module provides Pydantic models for:
- Query parameters of the lookup and connotation endpoints
- Dictionary entries (SynonymResponse) returned by /api/lookup
- Connotation guidance (ConnotationResponse) returned by /api/connotation
"""
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LookupQuery(BaseModel):
    """Query schema for GET /api/lookup."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    word: str = Field(..., min_length=1, max_length=80, description="Word to look up")


class ConnotationQuery(BaseModel):
    """Query schema for GET /api/connotation."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    headword: str = Field(..., min_length=1, max_length=80)
    synonym: str = Field(..., min_length=1, max_length=80)
    partOfSpeech: str = Field(..., min_length=1, max_length=40)
    definition: str = Field(..., min_length=1, max_length=400)


class BilingualText(BaseModel):
    """English text with an optional Simplified Chinese rendering."""

    en: str
    zh: Optional[str] = None


def _coerce_bilingual(value: Any) -> Any:
    # Older prompts asked for plain strings; accept them as English-only text.
    if isinstance(value, str):
        return {"en": value}
    return value


class Meaning(BaseModel):
    """One sense of a word."""

    definition: str
    example: Optional[BilingualText] = None
    synonyms: List[BilingualText]

    @field_validator("example", mode="before")
    @classmethod
    def coerce_example(cls, v: Any) -> Any:
        return _coerce_bilingual(v)

    @field_validator("synonyms", mode="before")
    @classmethod
    def coerce_synonyms(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [_coerce_bilingual(item) for item in v]
        return v


class Item(BaseModel):
    """Senses grouped by part of speech."""

    partOfSpeech: str
    meanings: List[Meaning]


class SynonymResponse(BaseModel):
    """Dictionary entry returned by GET /api/lookup."""

    word: str
    phonetics: Optional[List[str]] = None
    items: List[Item]


class ConnotationResponse(BaseModel):
    """Connotation guidance returned by GET /api/connotation.

    Unknown keys the model emits are dropped; enums and list bounds are enforced.
    """

    model_config = ConfigDict(populate_by_name=True)

    headword: str
    synonym: str
    partOfSpeech: str
    definition: str

    polarity: Literal["positive", "negative", "neutral", "mixed"]
    # "register" would shadow ABCMeta.register on the model class.
    register_: Literal["formal", "neutral", "informal"] = Field(..., alias="register")

    toneTags: List[BilingualText] = Field(..., min_length=1, max_length=6)
    usageNote: BilingualText

    cautions: Optional[List[BilingualText]] = Field(None, max_length=4)
    example: Optional[BilingualText] = None
