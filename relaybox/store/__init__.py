from .store import MessageStore, LATEST

__all__ = [
    "MessageStore",
    "LATEST",
]
