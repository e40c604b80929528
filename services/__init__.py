"""
Services module - external API integrations
"""
from .gemini_service import GeminiService, extract_sources, user_text

__all__ = [
    "GeminiService",
    "extract_sources",
    "user_text",
]
