import logging
import re
from dataclasses import dataclass
from typing import Optional

from config import Config

from relaybox.errors import RecipientNotAllowed


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RelayPolicy:
    """
    The relay settings that apply to every release.

    This is built once at startup and handed to the release pipeline. It is
    never changed afterwards, so it can be shared between concurrent
    releases without locking.

    Configuration is via the `relay` mapping with the following keys:
    * `allowed_recipients` (optional) a regular expression that every
      recipient address must match
    * `return_path` (optional) an address used as the `Return-Path` header
      and the envelope sender of every released message
    """

    allowed_recipients: Optional[re.Pattern] = None
    return_path: Optional[str] = None

    @classmethod
    def from_config(cls, app_config: Config) -> "RelayPolicy":
        relay_config = app_config.get("relay", {})

        pattern = relay_config.get("allowed_recipients", None)
        return_path = relay_config.get("return_path", None)

        allowed = None
        if pattern:
            try:
                allowed = re.compile(pattern)
            except re.error as e:
                logger.error("The allowed_recipients pattern %(pattern)s is invalid: %(reason)s", {
                    "pattern": pattern,
                    "reason": str(e),
                })
                raise

        return cls(allowed_recipients=allowed, return_path=return_path or None)

    def check_recipient(self, address: str) -> None:
        """
        Raises `RecipientNotAllowed` if an allowlist is configured and the
        address does not match it.
        """
        if self.allowed_recipients is None:
            return

        if not self.allowed_recipients.search(address):
            logger.debug("Recipient %(address)s does not match %(pattern)s", {
                "address": address,
                "pattern": self.allowed_recipients.pattern,
            })
            raise RecipientNotAllowed(f"Mail address does not match allowlist: {address}")

    def return_path_header(self) -> Optional[str]:
        """
        Returns the `Return-Path` value for the override address, if any.
        """
        return f"<{self.return_path}>" if self.return_path else None
