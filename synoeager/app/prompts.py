"""Prompt messages and structured-output schemas for each endpoint."""
from typing import Any, Dict, List

from synoeager.app.schemas import ConnotationQuery, LookupQuery

_BILINGUAL_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "en": {"type": "string"},
        "zh": {"type": "string"},
    },
    "required": ["en"],
}

LOOKUP_SYSTEM_PROMPT = """You are a meticulous lexicographer. The user will provide a word. You must provide an EXHAUSTIVE, comprehensive analysis of this word.
1. Output strictly valid JSON.
2. Structure the JSON exactly as requested.
3. Include EVERY possible definition (common, rare, archaic, technical).
4. For EACH definition, provide a unique example sentence with a natural Simplified Chinese translation in "zh".
5. For EACH definition, provide precise synonyms, each with a short Chinese gloss in "zh".
6. Definitions: English -> English.
7. Do not wrap in Markdown code blocks, just raw JSON.
8. Schema:
{
  "word": "string",
  "phonetics": ["string"],
  "items": [
    {
      "partOfSpeech": "noun|verb|etc",
      "meanings": [
        {
          "definition": "string",
          "example": {"en": "string", "zh": "string"},
          "synonyms": [{"en": "string", "zh": "string"}]
        }
      ]
    }
  ]
}"""

CONNOTATION_SYSTEM_PROMPT = (
    "You are a bilingual (English + Simplified Chinese) writing coach and lexicographer.\n"
    "Task: Given a headword sense and ONE candidate synonym, produce compact connotation "
    "guidance to help a writer choose the best word.\n"
    "Rules:\n"
    "1) Keep it SHORT (UI tooltip). Prefer 1-2 sentences per field.\n"
    '2) Provide natural Chinese; if unsure, omit "zh" for that field.\n'
    "3) Return 2-5 toneTags. Return 0-3 cautions.\n"
)

LOOKUP_RESPONSE_FORMAT: Dict[str, Any] = {
    "type": "json_schema",
    "json_schema": {
        "name": "lookup",
        "strict": True,
        "schema": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "word": {"type": "string"},
                "phonetics": {"type": "array", "items": {"type": "string"}},
                "items": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "additionalProperties": False,
                        "properties": {
                            "partOfSpeech": {"type": "string"},
                            "meanings": {
                                "type": "array",
                                "items": {
                                    "type": "object",
                                    "additionalProperties": False,
                                    "properties": {
                                        "definition": {"type": "string"},
                                        "example": _BILINGUAL_SCHEMA,
                                        "synonyms": {"type": "array", "items": _BILINGUAL_SCHEMA},
                                    },
                                    "required": ["definition", "synonyms"],
                                },
                            },
                        },
                        "required": ["partOfSpeech", "meanings"],
                    },
                },
            },
            "required": ["word", "items"],
        },
    },
}

CONNOTATION_RESPONSE_FORMAT: Dict[str, Any] = {
    "type": "json_schema",
    "json_schema": {
        "name": "connotation",
        "strict": True,
        "schema": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "headword": {"type": "string"},
                "synonym": {"type": "string"},
                "partOfSpeech": {"type": "string"},
                "definition": {"type": "string"},
                "polarity": {"type": "string", "enum": ["positive", "negative", "neutral", "mixed"]},
                "register": {"type": "string", "enum": ["formal", "neutral", "informal"]},
                "toneTags": {"type": "array", "minItems": 1, "maxItems": 6, "items": _BILINGUAL_SCHEMA},
                "usageNote": _BILINGUAL_SCHEMA,
                "cautions": {"type": "array", "maxItems": 4, "items": _BILINGUAL_SCHEMA},
                "example": _BILINGUAL_SCHEMA,
            },
            "required": [
                "headword",
                "synonym",
                "partOfSpeech",
                "definition",
                "polarity",
                "register",
                "toneTags",
                "usageNote",
            ],
        },
    },
}


def build_lookup_messages(query: LookupQuery) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": LOOKUP_SYSTEM_PROMPT},
        {"role": "user", "content": f'Define the word: "{query.word}"'},
    ]


def build_connotation_messages(query: ConnotationQuery) -> List[Dict[str, str]]:
    user_prompt = (
        f"Headword: {query.headword}\n"
        f"Part of speech: {query.partOfSpeech}\n"
        f"Sense definition: {query.definition}\n"
        f"Candidate synonym: {query.synonym}\n\n"
        f'Explain how "{query.synonym}" differs in connotation from other '
        f"near-synonyms in THIS sense."
    )
    return [
        {"role": "system", "content": CONNOTATION_SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]
