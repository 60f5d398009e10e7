"""Pydantic models shared across application layers."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Mode(str, Enum):
    """Supported transformation kinds."""

    REWRITE = "rewrite"
    RESPONSE = "response"


class LetterRequest(BaseModel):
    """Validated letter submission."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(min_length=1)
    mode: Mode
    additional_context: str = ""


class PromptPair(BaseModel):
    """System and user instructions for one completion."""

    model_config = ConfigDict(frozen=True)

    system_instruction: str
    user_instruction: str


class CompletionOptions(BaseModel):
    """Provider parameters for a single completion."""

    model_config = ConfigDict(frozen=True)

    model: str
    temperature: float = Field(ge=0.0, le=2.0)
    max_tokens: int = Field(gt=0)


class ProcessedLetter(BaseModel):
    """Successful pipeline output."""

    processed_text: str


class ProcessTextResponse(BaseModel):
    """Body returned by ``POST /api/process-text`` on success."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    processed_text: str = Field(alias="processedText")


class ErrorResponse(BaseModel):
    """Error body returned by ``POST /api/process-text``."""

    success: bool = False
    error: str
    detail: str | None = None


class UploadResponse(BaseModel):
    """Body returned by ``POST /api/upload-file`` on success."""

    text: str
    filename: str


class UploadErrorResponse(BaseModel):
    """Error body returned by ``POST /api/upload-file``."""

    error: str
    filename: str | None = None
    detail: str | None = None
