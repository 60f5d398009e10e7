"""Adapters for external services and document parsing."""
