"""Exceptions related to Data Access Objects (DAO) operations.

Classes:
    DAOError:
        Generic base class for DAO-related exceptions.

    ShortURLNotFoundError:
        Raised when a UrlRecord is not found in the data store.

    ShortURLAlreadyExistsError:
        Raised when attempting to insert a UrlRecord whose shortcode already exists.

    DataStoreError:
        Raised when there is an error in the data store (e.g., connection issues,
        failed fsync, full disk, etc.).

Example:
    >>> from clickshortener.dao.exceptions import ShortURLNotFoundError
    >>> raise ShortURLNotFoundError("Short URL with code 'abc123' not found.")
    Traceback (most recent call last):
        ...
    clickshortener.dao.exceptions.ShortURLNotFoundError: Short URL with code 'abc123' not found.
"""


class DAOError(Exception):
    """Generic base class for DAO-related exceptions."""

    pass


class ShortURLNotFoundError(DAOError):
    """Exception raised when a UrlRecord is not found in the data store."""

    pass


class ShortURLAlreadyExistsError(DAOError):
    """Exception raised when attempting to insert a UrlRecord that already exists in the data store."""

    pass


class DataStoreError(DAOError):
    """Exception raised when there is an error in the data store.

    e.g. connection issues, timeouts, unacknowledged fsync, I/O errors, etc.
    """

    pass
