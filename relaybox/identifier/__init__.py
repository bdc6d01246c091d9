from .identifier import new_message_id, new_token, DOMAIN_TAG

__all__ = [
    "new_message_id",
    "new_token",
    "DOMAIN_TAG",
]
