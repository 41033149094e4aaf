"""
Record Store Interface - Shared Backend Collections.

Defines the contract for the append-only document store that devices
write to and the admin view reads from.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from utils.db.documents import SERVER_TIMESTAMP

LOCATIONS_COLLECTION = "user_locations"
MEDIA_COLLECTION = "user_picture"
LOGIN_COLLECTION = "login_information"


@dataclass
class StoredDocument:
    """
    A document as held by the store.

    Attributes:
        doc_id: Store-assigned identifier.
        collection: Collection the document belongs to.
        data: Field values; server timestamps already resolved.
    """

    doc_id: str
    collection: str
    data: dict[str, Any] = field(default_factory=dict)


DocumentListener = Callable[[list[StoredDocument]], None]


class RecordStoreInterface(ABC):
    """
    Interface for the shared record store.

    Implementations should handle:
    - Server-assigned timestamps (SERVER_TIMESTAMP placeholder)
    - Live change notification ordered by timestamp descending
    - Unordered full-collection reads
    """

    @abstractmethod
    def append(self, collection: str, data: dict[str, Any]) -> StoredDocument:
        """
        Appends a document to a collection.

        Args:
            collection: Target collection name.
            data: Field values, may contain SERVER_TIMESTAMP.

        Returns:
            The stored document.

        Raises:
            BackendUnavailable: If the write fails.
        """
        pass

    @abstractmethod
    def fetch_all(self, collection: str) -> list[StoredDocument]:
        """
        Reads every document of a collection, in no particular order.

        Raises:
            BackendUnavailable: If the read fails.
        """
        pass

    @abstractmethod
    def watch(
        self, collection: str, listener: DocumentListener
    ) -> Callable[[], None]:
        """
        Registers a listener for a collection.

        The listener is called immediately with the current documents
        (newest first) and again after every change.

        Returns:
            Callable that detaches the listener. Safe to call twice.
        """
        pass

    @abstractmethod
    def listener_count(self, collection: str | None = None) -> int:
        """Returns the number of attached listeners."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Detaches all listeners and releases resources."""
        pass


__all__ = [
    "LOCATIONS_COLLECTION",
    "LOGIN_COLLECTION",
    "MEDIA_COLLECTION",
    "SERVER_TIMESTAMP",
    "DocumentListener",
    "RecordStoreInterface",
    "StoredDocument",
]
