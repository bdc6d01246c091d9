class ReleaseError(Exception):
    """
    Base class for every failure that aborts a release.

    `kind` names the failure for callers that need to branch on it without
    importing the individual classes.
    """
    kind = "ReleaseError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class NotFound(ReleaseError):
    kind = "NotFound"


class InvalidAddress(ReleaseError):
    kind = "InvalidAddress"


class RecipientNotAllowed(ReleaseError):
    kind = "RecipientNotAllowed"


class EmptyRecipientList(ReleaseError):
    kind = "EmptyRecipientList"


class NoSenderFound(ReleaseError):
    kind = "NoSenderFound"


class DeliveryFailed(ReleaseError):
    kind = "DeliveryFailed"


class MalformedMessage(ReleaseError):
    kind = "MalformedMessage"
