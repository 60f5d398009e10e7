"""Letter processing pipeline: validate, render prompts, complete."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from app.exceptions import PipelineError, UnknownPipelineError
from app.models import CompletionOptions, ProcessedLetter, PromptPair
from app.prompts import PromptBuilder
from app.validation import validate_letter_request

logger = logging.getLogger(__name__)


class Completer(Protocol):
    async def complete(
        self, prompt: PromptPair, options: CompletionOptions | None = None
    ) -> str: ...


class LetterPipeline:
    """Runs one letter request through every stage, strictly in order."""

    def __init__(
        self,
        completer: Completer,
        prompt_builder: PromptBuilder,
        max_text_length: int,
    ) -> None:
        self._completer = completer
        self._prompt_builder = prompt_builder
        self._max_text_length = max_text_length

    async def handle(self, raw: Any) -> ProcessedLetter:
        """Process a decoded request body.

        Raises a ``PipelineError`` subclass for every failure; anything
        unexpected is logged and reported as ``UnknownPipelineError``.
        """

        try:
            request = validate_letter_request(raw, self._max_text_length)
            prompt = self._prompt_builder.build(request)
            logger.info(
                "Processing letter",
                extra={
                    "mode": request.mode.value,
                    "text_length": len(request.text),
                    "has_context": bool(request.additional_context),
                    "template_version": self._prompt_builder.version,
                },
            )
            processed = await self._completer.complete(prompt)
        except PipelineError:
            raise
        except Exception as exc:
            logger.exception("Unexpected pipeline failure")
            raise UnknownPipelineError(detail=f"{type(exc).__name__}: {exc}") from exc

        logger.info("Letter processed", extra={"output_length": len(processed)})
        return ProcessedLetter(processed_text=processed)
