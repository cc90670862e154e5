"""Pydantic data models for blockmark."""

# Import models in dependency order so Transition can reference Document
from blockmark.models.document import Document
from blockmark.models.editing import CursorRef, KeyEvent, PendingRestore, RestoreKind, Transition

__all__ = ["CursorRef", "Document", "KeyEvent", "PendingRestore", "RestoreKind", "Transition"]
