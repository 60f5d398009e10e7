"""Prompt templates and rendering."""

from app.prompts.builder import PromptBuilder, PromptTemplates, TemplateError, load_templates

__all__ = ["PromptBuilder", "PromptTemplates", "TemplateError", "load_templates"]
