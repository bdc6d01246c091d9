import logging
from email.utils import formatdate
from typing import Optional, Protocol

from relaybox.address import parse_address, parse_address_list
from relaybox.errors import EmptyRecipientList, NoSenderFound
from relaybox.headers import HeaderBlock
from relaybox.identifier import new_message_id
from relaybox.policy import RelayPolicy


logger = logging.getLogger(__name__)


SENSITIVE_HEADERS = ("Bcc",)


class Store(Protocol):
    def load_raw(self, message_id: str) -> bytes:
        ...


class Transport(Protocol):
    def __enter__(self) -> "Transport":
        ...

    def __exit__(self, type, value, traceback) -> bool:
        ...

    def sendmail(self, recipients: list[str], message: bytes, sender: Optional[str] = None) -> object:
        ...


def resolve_sender(headers: HeaderBlock) -> Optional[str]:
    """
    Returns the address a message should be sent from: the first address
    of the first `Sender` header if there is one, otherwise the first
    `From` address.
    """
    sender = headers.get("Sender")
    if sender:
        senders = parse_address_list(sender)
        if senders:
            return senders[0]

    from_header = headers.get("From")
    if from_header:
        froms = parse_address_list(from_header)
        if froms:
            return froms[0]

    return None


class ReleasePipeline:
    """
    Releases a captured message to a new set of recipients.

    A release loads the original bytes, validates every recipient, and then
    rewrites a copy of the message:

    * `Bcc` is removed, so recipients never see blind copies
    * `Return-Path` is set to the policy override, if there is one, and the
      override becomes the envelope sender
    * `Date` is set to the time of the release
    * `Message-Id` is replaced with a new, unique identifier

    All other headers and the body are passed on untouched. The rewritten
    copy only exists for the duration of the call and the stored message is
    never changed. Any failure raises a `ReleaseError` and nothing is sent.
    """

    def __init__(self, store: Store, transport: Transport, policy: RelayPolicy) -> None:
        self.store = store
        self.transport = transport
        self.policy = policy

    def release(self, message_id: str, recipients: list[str]) -> None:
        raw = self.store.load_raw(message_id)

        addresses = self.validate_recipients(recipients)

        message = HeaderBlock.parse(raw)

        sender = self.policy.return_path or resolve_sender(message)
        if not sender:
            raise NoSenderFound("No From header found")

        message.remove(SENSITIVE_HEADERS)

        self._normalize_return_path(message)

        message.upsert("Date", formatdate(localtime=True))
        message.upsert("Message-Id", new_message_id())

        logger.info("Releasing message %(id)s from %(sender)s to %(recipients)s", {
            "id": message_id,
            "sender": sender,
            "recipients": ", ".join(addresses),
        })

        with self.transport as mailer:
            mailer.sendmail(addresses, message.as_bytes(), sender)

    def validate_recipients(self, recipients: list[str]) -> list[str]:
        """
        Returns the bare address of every recipient, in order.

        One bad recipient fails the whole release; a message is never sent
        to only part of the list.
        """
        addresses = []

        for recipient in recipients:
            address = parse_address(recipient)
            self.policy.check_recipient(address)
            addresses.append(address)

        if not addresses:
            raise EmptyRecipientList("No valid addresses found")

        return addresses

    def _normalize_return_path(self, message: HeaderBlock) -> None:
        return_path = self.policy.return_path_header()

        if not return_path:
            return

        if message.get("Return-Path") != return_path:
            message.remove(["Return-Path"])
            message.upsert("Return-Path", return_path)
