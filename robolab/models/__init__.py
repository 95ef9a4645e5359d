"""Pydantic models for the payloads the engine hands to its collaborators."""

from robolab.models.events import AgentSnapshot, CompletionEvent

__all__ = ["AgentSnapshot", "CompletionEvent"]
