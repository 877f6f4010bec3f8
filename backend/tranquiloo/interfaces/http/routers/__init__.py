from . import chat, health, memory, research, safety

__all__ = ["chat", "health", "memory", "research", "safety"]
