"""Conversational safety and research retrieval core for the Tranquiloo companion."""

__version__ = "0.3.0"
