from .session import EditorSnapshot, InteractiveSession, SessionState, display_scale_for

__all__ = ["EditorSnapshot", "InteractiveSession", "SessionState", "display_scale_for"]
