from .service import GenerationError, ResponseOrchestrator

__all__ = ["GenerationError", "ResponseOrchestrator"]
