"""Render the instructions sent to the language model."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from string import Formatter
from typing import Any, assert_never

from app.models import LetterRequest, Mode, PromptPair

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = {"context_section", "letter"}
_ALLOWED_FIELDS = _REQUIRED_FIELDS | {"closing_phrase", "forbidden_phrases"}


class TemplateError(ValueError):
    """Raised when a template file is incomplete or malformed."""


@dataclass(frozen=True)
class PromptTemplates:
    """Instruction text loaded from a TOML asset."""

    version: str
    system: str
    closing_phrase: str
    with_context: str
    without_context: str
    rewrite: str
    response: str
    forbidden_phrases: tuple[str, ...]

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> PromptTemplates:
        try:
            modes = data["modes"]
            templates = cls(
                version=str(data["version"]),
                system=data["system"],
                closing_phrase=data["closing_phrase"],
                with_context=data["context"]["with_context"],
                without_context=data["context"]["without_context"],
                rewrite=modes["rewrite"]["template"],
                response=modes["response"]["template"],
                forbidden_phrases=tuple(modes["response"].get("forbidden_phrases", ())),
            )
        except (KeyError, TypeError) as exc:
            raise TemplateError(f"Prompt templates are missing a section: {exc}") from exc

        for name in ("rewrite", "response"):
            fields = _placeholders(getattr(templates, name), name)
            missing = _REQUIRED_FIELDS - fields
            if missing:
                raise TemplateError(
                    f"Template {name!r} lacks placeholders: {', '.join(sorted(missing))}"
                )
            unknown = fields - _ALLOWED_FIELDS
            if unknown:
                raise TemplateError(
                    f"Template {name!r} has unknown placeholders: {', '.join(sorted(unknown))}"
                )
        if _placeholders(templates.with_context, "with_context") != {"context"}:
            raise TemplateError("Context template must use exactly the {context} placeholder")
        return templates


def _placeholders(template: str, name: str) -> set[str]:
    """Named fields in ``template``; positional, converted or formatted fields are rejected."""

    try:
        parsed = list(Formatter().parse(template))
    except ValueError as exc:
        raise TemplateError(f"Template {name!r} is not a valid format string: {exc}") from exc

    fields = set()
    for _, field, spec, conversion in parsed:
        if field is None:
            continue
        if not field.isidentifier() or spec or conversion:
            raise TemplateError(f"Template {name!r} has an unsupported placeholder: {{{field}}}")
        fields.add(field)
    return fields


def load_templates(path: Path | None = None) -> PromptTemplates:
    """Load templates from ``path`` or from the packaged default."""

    if path is None:
        raw = resources.files("app.prompts").joinpath("templates.toml").read_text("utf-8")
        source = "package"
    else:
        raw = Path(path).read_text("utf-8")
        source = str(path)

    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        raise TemplateError(f"Prompt templates are not valid TOML: {exc}") from exc

    templates = PromptTemplates.from_mapping(data)
    logger.info(
        "Prompt templates loaded",
        extra={"template_version": templates.version, "template_source": source},
    )
    return templates


class PromptBuilder:
    """Turns a validated letter request into a system/user prompt pair."""

    def __init__(self, templates: PromptTemplates) -> None:
        self._templates = templates

    @property
    def version(self) -> str:
        return self._templates.version

    def build(self, request: LetterRequest) -> PromptPair:
        templates = self._templates

        if request.additional_context:
            context_section = templates.with_context.format(context=request.additional_context)
        else:
            context_section = templates.without_context

        match request.mode:
            case Mode.REWRITE:
                template = templates.rewrite
            case Mode.RESPONSE:
                template = templates.response
            case _:
                assert_never(request.mode)

        user_instruction = template.format(
            context_section=context_section,
            closing_phrase=templates.closing_phrase,
            forbidden_phrases="\n".join(f"- {phrase}" for phrase in templates.forbidden_phrases),
            letter=request.text,
        )
        return PromptPair(
            system_instruction=templates.system,
            user_instruction=user_instruction,
        )
