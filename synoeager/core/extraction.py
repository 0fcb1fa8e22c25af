"""Robust JSON extraction from LLM completion text.

Models asked for strict JSON still wrap it in Markdown fences, prepend a
sentence, or emit slightly broken syntax. ``parse_completion`` tries
progressively more forgiving stages:

1. ``direct``: the trimmed text as-is
2. ``unfenced``: the text with code fences removed
3. ``balanced``: the first balanced ``{...}`` object in the unfenced text
4. ``repaired``: ``json_repair`` over the balanced object (or the unfenced
   text when no balanced object exists)
"""
import json
import logging
import re
from typing import Any, Dict, List, Optional, Type, TypeVar

from json_repair import repair_json
from pydantic import BaseModel, ValidationError

from synoeager.core.errors import ParseError, SchemaValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_OPEN_FENCE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)
_CLOSE_FENCE = re.compile(r"```\s*")


def strip_code_fences(text: str) -> str:
    """Remove Markdown code fences (```json ... ```) and trim the result."""
    text = _OPEN_FENCE.sub("", text)
    text = _CLOSE_FENCE.sub("", text)
    return text.strip()


def extract_first_json_object(text: str) -> Optional[str]:
    """Return the first balanced ``{...}`` substring of ``text``.

    Braces inside JSON string literals (including escaped quotes) are
    ignored. Returns None when there is no ``{`` or the object never closes.
    """
    text = text.strip()
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False

    for index in range(start, len(text)):
        char = text[index]

        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:index + 1]

    return None


def _try_loads(text: str) -> Optional[Any]:
    try:
        return json.loads(text)
    except ValueError:
        return None


def parse_completion(raw_text: str, label: str) -> Any:
    """Coerce a completion into a JSON value.

    Args:
        raw_text: Completion text returned by the model
        label: Endpoint name used in logs ("lookup", "connotation")

    Returns:
        Decoded JSON value (usually a dict)

    Raises:
        ParseError: When every stage fails
    """
    trimmed = (raw_text or "").strip()

    data = _try_loads(trimmed)
    if data is not None or trimmed == "null":
        return data

    unfenced = strip_code_fences(trimmed)
    data = _try_loads(unfenced)
    if data is not None:
        logger.debug(f"[{label}] parsed completion after stripping code fences")
        return data

    balanced = extract_first_json_object(unfenced)
    if balanced is not None:
        data = _try_loads(balanced)
        if data is not None:
            logger.debug(f"[{label}] parsed first balanced JSON object")
            return data

    candidate = balanced if balanced is not None else unfenced
    try:
        repaired = repair_json(candidate, return_objects=True)
    except Exception as e:
        logger.warning(f"[{label}] JSON repair failed: {e}", exc_info=True)
        raise ParseError(label, "repaired") from e

    # repair_json returns "" when nothing salvageable remains.
    if repaired == "" or repaired is None:
        logger.warning(f"[{label}] completion is not JSON (length={len(trimmed)})")
        raise ParseError(label, "repaired")

    logger.info(f"[{label}] completion required JSON repair")
    return repaired


def format_validation_issues(error: ValidationError) -> List[Dict[str, str]]:
    return [
        {
            "path": ".".join(str(part) for part in issue["loc"]),
            "message": issue["msg"],
        }
        for issue in error.errors()
    ]


def validate_payload(data: Any, model: Type[ModelT], label: str) -> ModelT:
    """Validate parsed JSON against a response model.

    Raises:
        SchemaValidationError: When the shape does not match. Logged separately
            from parse failures so the two can be told apart.
    """
    try:
        return model.model_validate(data)
    except ValidationError as e:
        issues = format_validation_issues(e)
        logger.warning(f"[{label}] completion failed schema validation: {issues}")
        raise SchemaValidationError(label, issues) from e
