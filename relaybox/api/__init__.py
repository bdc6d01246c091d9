from .api import create_app, ReleaseMessageRequest

__all__ = [
    "create_app",
    "ReleaseMessageRequest",
]
