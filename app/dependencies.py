"""Dependency providers for the FastAPI application."""

from functools import lru_cache
from pathlib import Path

import httpx
from fastapi import Depends
from starlette.requests import HTTPConnection

from app.config import Settings, get_settings
from app.pipeline import LetterPipeline
from app.prompts import PromptBuilder, load_templates
from app.services.completion_service import CompletionService
from app.services.document_extractor import DocumentExtractor


async def get_http_client(connection: HTTPConnection) -> httpx.AsyncClient:
    """Retrieve the shared AsyncClient from application state."""

    return connection.app.state.http_client  # type: ignore[return-value]


@lru_cache
def _cached_prompt_builder(path: str | None) -> PromptBuilder:
    return PromptBuilder(load_templates(Path(path) if path else None))


def get_prompt_builder(settings: Settings = Depends(get_settings)) -> PromptBuilder:
    """Prompt builder for the configured template file, loaded once."""

    path = settings.prompt_templates_path
    return _cached_prompt_builder(str(path) if path else None)


async def get_completion_service(
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> CompletionService:
    """Dependency provider for CompletionService."""

    return CompletionService(client=client, settings=settings)


async def get_letter_pipeline(
    completion_service: CompletionService = Depends(get_completion_service),
    prompt_builder: PromptBuilder = Depends(get_prompt_builder),
    settings: Settings = Depends(get_settings),
) -> LetterPipeline:
    """Dependency provider for LetterPipeline."""

    return LetterPipeline(
        completer=completion_service,
        prompt_builder=prompt_builder,
        max_text_length=settings.max_text_length,
    )


async def get_document_extractor(
    settings: Settings = Depends(get_settings),
) -> DocumentExtractor:
    """Dependency provider for DocumentExtractor."""

    return DocumentExtractor(settings=settings)
