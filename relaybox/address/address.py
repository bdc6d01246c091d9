import logging
import re
from email.utils import getaddresses

from relaybox.errors import InvalidAddress


logger = logging.getLogger(__name__)


ADDR_SPEC = re.compile(r"^[^@\s]+@[^@\s]+$")

# Quoted display names and comments may hold commas that do not separate addresses
QUOTED = re.compile(r'"(?:[^"\\]|\\.)*"|\((?:[^()\\]|\\.)*\)')


def parse_address_list(value: str) -> list[str]:
    """
    Returns the address-only form of every mailbox in a header value,
    skipping entries that do not look like an address.
    """
    return [
        address for (_name, address) in getaddresses([value])
        if ADDR_SPEC.match(address)
    ]


def parse_address(value: str) -> str:
    """
    Parses a single mailbox (with or without a display name) and returns
    the bare address.

    Raises `InvalidAddress` for empty input, lists of addresses, or
    anything that does not reduce to local-part@domain.
    """
    if not value or not value.strip():
        raise InvalidAddress("Invalid email address: (empty)")

    parsed = getaddresses([value])

    if len(parsed) != 1 or "," in QUOTED.sub("", value):
        logger.debug("%(value)s parsed to %(count)d addresses", {"value": value, "count": len(parsed)})
        raise InvalidAddress(f"Invalid email address: {value}")

    (_name, address) = parsed[0]

    if not ADDR_SPEC.match(address):
        raise InvalidAddress(f"Invalid email address: {value}")

    return address
