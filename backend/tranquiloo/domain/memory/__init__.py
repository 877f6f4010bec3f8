# backend/tranquiloo/domain/memory/__init__.py
from .service import ConversationMemory, extract_key_topics, render_summary

__all__ = ["ConversationMemory", "extract_key_topics", "render_summary"]
