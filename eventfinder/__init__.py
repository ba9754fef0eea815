"""Prompt-driven event search: intent extraction, relevance ranking and scheduling."""

__version__ = "0.1.0"
