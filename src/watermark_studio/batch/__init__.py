from .runner import BatchEvent, BatchRunner

__all__ = ["BatchEvent", "BatchRunner"]
