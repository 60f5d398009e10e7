"""Entry guard for letter requests."""

from __future__ import annotations

from typing import Any

from app.exceptions import InvalidInputError
from app.models import LetterRequest, Mode

_VALID_MODES = {mode.value: mode for mode in Mode}


def validate_letter_request(raw: Any, max_text_length: int) -> LetterRequest:
    """Turn a decoded JSON body into a ``LetterRequest``.

    Rules are checked in order and the first violation wins:

    1. ``text`` is present, a string, and not blank.
    2. ``text`` is at most ``max_text_length`` characters.
    3. ``type`` is exactly ``"rewrite"`` or ``"response"``.
    4. ``additionalInfo`` is optional; when given it is stripped.
    """

    if not isinstance(raw, dict):
        raise InvalidInputError(
            "Ongeldig verzoek: verwacht een JSON-object.",
            detail=f"body type {type(raw).__name__}",
        )

    text = raw.get("text")
    if not isinstance(text, str) or not text.strip():
        raise InvalidInputError("Tekst is verplicht en moet een string zijn.")

    text = text.strip()
    if len(text) > max_text_length:
        raise InvalidInputError(
            f"Tekst mag niet langer zijn dan {max_text_length} karakters.",
            detail=f"length {len(text)}",
        )

    mode_value = raw.get("type")
    mode = _VALID_MODES.get(mode_value) if isinstance(mode_value, str) else None
    if mode is None:
        raise InvalidInputError('Type moet "rewrite" of "response" zijn.')

    additional = raw.get("additionalInfo")
    if additional is None:
        additional = ""
    elif not isinstance(additional, str):
        raise InvalidInputError("Aanvullende informatie moet tekst zijn.")

    return LetterRequest(text=text, mode=mode, additional_context=additional.strip())
