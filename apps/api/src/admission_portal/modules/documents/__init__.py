"""
Documents module - Supporting document metadata and verification.
"""

from .models import Document, DocumentType

__all__ = ["Document", "DocumentType"]
