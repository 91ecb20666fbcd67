"""Abstract base class for ShortURL data access objects (DAOs).

This class establishes a consistent contract for all ShortURL DAO implementations,
regardless of the underlying storage mechanism (e.g., Redis, JSON files on disk).

Responsibilities:
    - Provide an interface for inserting and retrieving UrlRecord objects.
    - Provide an atomic interface for recording link visits.
    - Standardize error handling across multiple data store implementations.

Example:
    Typical usage with a datastore-specific implementation:

        >>> from clickshortener.models import UrlRecord, VisitEvent
        >>> from clickshortener.dao.redis import ShortURLRedisDAO

        >>> dao = ShortURLRedisDAO(...)

        >>> record = UrlRecord(
        ...     target="https://example.com/blog/article-123",
        ...     shortcode="a1b2c3",
        ...     created_at=datetime.now(UTC),
        ... )
        >>> dao.insert(record)

        >>> dao.record_visit("a1b2c3", VisitEvent(timestamp=datetime.now(UTC), origin="203.0.113.7"))
        1

        >>> dao.get("a1b2c3").clicks
        1

        >>> dao.find("zzz999") is None
        True
"""

from abc import ABC, abstractmethod

from clickshortener.models import UrlRecord, VisitEvent
from clickshortener.dao.exceptions import ShortURLNotFoundError


class ShortURLBaseDAO(ABC):
    """Interface for ShortURL data access objects (DAOs).

    Methods:
        insert(record: UrlRecord, **kwargs) -> ShortURLBaseDAO:
            Insert a new UrlRecord into the data store.
            Raises ShortURLAlreadyExistsError if the shortcode already exists.
            Raises DataStoreError on connection or write failure.

        get(shortcode: str, **kwargs) -> UrlRecord:
            Retrieve a UrlRecord (with clicks and visit log) by shortcode.
            Raises ShortURLNotFoundError if the entry does not exist.
            Raises DataStoreError on connection or read failure.

        find(shortcode: str, **kwargs) -> UrlRecord | None:
            Same as get(), but returns None if the entry does not exist.

        record_visit(shortcode: str, visit: VisitEvent, **kwargs) -> int:
            Atomically append a visit and increment the click counter.
            Raises ShortURLNotFoundError if the entry does not exist.
            Raises DataStoreError on connection or write failure.

    Subclassing:
        Datastore-specific implementations (e.g., ShortURLRedisDAO or
        ShortURLFileDAO) must extend this class and implement all
        abstract methods.

    NOTE:
        - Records are never deleted or expired by the data store. Expiry is
          evaluated by the services against the wall clock.
        - A successful insert() or record_visit() must have reached stable
          storage before returning.
    """

    @abstractmethod
    def insert(self, record: UrlRecord, **kwargs) -> 'ShortURLBaseDAO':
        """Insert a new UrlRecord into the data store.

        The insertion is all-or-nothing: either the whole record becomes
        visible or nothing does.

        Args:
            record (UrlRecord):
                The UrlRecord instance to be inserted.

            **kwargs:
                Additional keyword arguments, used by data store.

        Returns:
            ShortURLBaseDAO: self (for method chaining)

        Raises:
            ShortURLAlreadyExistsError:
                If a UrlRecord with the same shortcode already exists

            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def get(self, shortcode: str, **kwargs) -> UrlRecord:
        """Retrieve a UrlRecord from the data store by its shortcode.

        Args:
            shortcode (str):
                The shortcode of the UrlRecord to be retrieved.

            **kwargs:
                Additional keyword arguments, used by data store.

        Returns:
            UrlRecord: The UrlRecord instance, including clicks and visit log.

        Raises:
            ShortURLNotFoundError:
                If no UrlRecord with the given shortcode exists.

            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def record_visit(self, shortcode: str, visit: VisitEvent, **kwargs) -> int:
        """Atomically append a visit to a record and increment its click counter.

        Concurrent visits to the same shortcode must never lose updates.

        Args:
            shortcode (str):
                The shortcode of the visited UrlRecord.

            visit (VisitEvent):
                The visit to append to the record's visit log.

            **kwargs:
                Additional keyword arguments, used by data store.

        Returns:
            int: The click count after this visit.

        Raises:
            ShortURLNotFoundError:
                If no UrlRecord with the given shortcode exists.

            DataStoreError:
                If there is an error in the data store.
        """
        pass

    def find(self, shortcode: str, **kwargs) -> UrlRecord | None:
        """Retrieve a UrlRecord by shortcode, or None if it doesn't exist.

        Raises:
            DataStoreError:
                If there is an error in the data store.
        """
        try:
            return self.get(shortcode, **kwargs)
        except ShortURLNotFoundError:
            return None
