import base64
import uuid


DOMAIN_TAG = "relaybox"


def new_token() -> str:
    """
    Returns a URL-safe token carrying 128 random bits.
    """
    return base64.urlsafe_b64encode(uuid.uuid4().bytes).strip(b"=").decode()


def new_message_id(domain_tag: str = DOMAIN_TAG) -> str:
    return f"<{new_token()}@{domain_tag}>"
