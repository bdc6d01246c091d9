from .policy import RelayPolicy

__all__ = [
    "RelayPolicy",
]
