"""Exceptions raised by wellness-pass."""


class WellnessError(Exception):
    """Base class for wellness-pass errors."""


class StoreError(WellnessError):
    """A persistent store operation failed."""


class StoreUnavailableError(StoreError):
    """The persistent store could not be reached."""


class DocumentNotFoundError(StoreError):
    """An update targeted a document that does not exist."""

    def __init__(self, collection: str, document_id: str):
        super().__init__(f"No document '{document_id}' in '{collection}'")
        self.collection = collection
        self.document_id = document_id


class ClientNotFoundError(WellnessError):
    """The client is not in the roster."""

    def __init__(self, client_id: str):
        super().__init__(f"Client '{client_id}' not found")
        self.client_id = client_id


class ActionNotAllowedError(WellnessError):
    """The session may not act on this client."""


class OfflineOperationError(WellnessError):
    """The operation needs a connection to the store."""


class InvalidFieldError(WellnessError, ValueError):
    """Unknown form field or rating value."""
