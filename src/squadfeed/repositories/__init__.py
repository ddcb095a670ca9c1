"""Data access helpers."""

from .content_repo import ContentRepository

__all__ = ["ContentRepository"]
