from .pipeline import ReleasePipeline, resolve_sender

__all__ = [
    "ReleasePipeline",
    "resolve_sender",
]
