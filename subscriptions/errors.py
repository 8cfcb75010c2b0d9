"""Exceptions raised by the subscription manager."""


class SubscriptionError(Exception):
    """Base class for all subscription manager errors."""


class ConfigError(SubscriptionError):
    """config.yaml is missing, malformed or lacks a value that is needed."""


class FetchError(SubscriptionError):
    """A document could not be downloaded."""


class FetchRejected(FetchError):
    """The server answered with a status that is not worth retrying."""

    def __init__(self, status: int, reason: str = ""):
        self.status = status
        self.reason = reason
        super().__init__(f"{status} {reason}".strip())


class FetchCancelled(FetchError):
    """The download was abandoned because shutdown was requested."""


class DocumentRejected(SubscriptionError):
    """A fetched document failed parsing or validation."""


class BootstrapError(SubscriptionError):
    """No usable document exists for the current subscription at startup."""


class ApplyError(SubscriptionError):
    """The engine could not be pointed at the new document."""
