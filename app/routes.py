"""HTTP handlers for letter processing and document upload."""

from __future__ import annotations

import json
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from app.config import Settings, get_settings
from app.dependencies import get_document_extractor, get_letter_pipeline
from app.exceptions import ExtractionError, InvalidInputError, PipelineError
from app.models import ErrorResponse, ProcessTextResponse, UploadErrorResponse, UploadResponse
from app.pipeline import LetterPipeline
from app.services.document_extractor import DocumentExtractor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.post(
    "/process-text",
    response_model=ProcessTextResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def process_text(
    request: Request,
    pipeline: Annotated[LetterPipeline, Depends(get_letter_pipeline)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> JSONResponse:
    """Validate a letter, run it through the language model, return the result."""

    try:
        raw = await _read_json(request)
        result = await pipeline.handle(raw)
    except PipelineError as exc:
        _log_failure(exc, request)
        body = ErrorResponse(
            error=exc.message,
            detail=exc.detail if settings.expose_error_details else None,
        )
        return JSONResponse(body.model_dump(exclude_none=True), status_code=exc.status_code)

    body = ProcessTextResponse(processed_text=result.processed_text)
    return JSONResponse(body.model_dump(by_alias=True))


@router.post(
    "/upload-file",
    response_model=UploadResponse,
    responses={
        400: {"model": UploadErrorResponse},
        413: {"model": UploadErrorResponse},
        422: {"model": UploadErrorResponse},
    },
)
async def upload_file(
    request: Request,
    extractor: Annotated[DocumentExtractor, Depends(get_document_extractor)],
    settings: Annotated[Settings, Depends(get_settings)],
    file: Annotated[UploadFile | None, File()] = None,
) -> JSONResponse:
    """Extract plain text from an uploaded PDF or DOCX file."""

    if file is None:
        body = UploadErrorResponse(error="Geen bestand geüpload.")
        return JSONResponse(body.model_dump(exclude_none=True), status_code=400)

    try:
        # One byte past the limit is enough to reject oversized files.
        data = await file.read(settings.max_upload_bytes + 1)
        text = await run_in_threadpool(extractor.extract, data, file.filename)
    except ExtractionError as exc:
        _log_failure(exc, request)
        body = UploadErrorResponse(
            error=exc.message,
            filename=exc.filename,
            detail=exc.detail if settings.expose_error_details else None,
        )
        return JSONResponse(body.model_dump(exclude_none=True), status_code=exc.status_code)
    finally:
        await file.close()

    body = UploadResponse(text=text, filename=extractor.display_name(file.filename))
    return JSONResponse(body.model_dump())


async def _read_json(request: Request) -> object:
    body = await request.body()
    if not body:
        return None
    try:
        return json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidInputError("Ongeldige JSON in het verzoek.", detail=str(exc)) from exc


def _log_failure(exc: PipelineError, request: Request) -> None:
    logger.log(
        logging.ERROR if exc.status_code >= 500 else logging.WARNING,
        "Request failed",
        extra={
            "path": request.url.path,
            "error_code": exc.code,
            "status_code": exc.status_code,
            "detail": exc.detail,
        },
    )
