# backend/voicelink/crud/__init__.py
"""
CRUD operations package for the application.
This module re-exports the CRUD operations from the underlying modules.
"""

from .crud_feedback import feedback
from .crud_translation import translation

__all__ = ["feedback", "translation"]
