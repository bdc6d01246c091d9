from .remailer import Remailer

__all__ = [
    "Remailer",
]
