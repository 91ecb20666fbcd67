import functools
from typing import TypeVar, Any
from collections.abc import Callable

from clickshortener.dao.exceptions import DataStoreError


__all__ = []

F = TypeVar('F', bound=Callable[..., Any])


def handle_file_io_error(method: F) -> F:
    """Wrap filesystem-interacting DAO methods to handle I/O errors

    FileNotFoundError and FileExistsError are expected outcomes and must be
    translated by the DAO method itself; any OSError that escapes is treated
    as a data store failure.

    Args:
        method (Callable[..., Any]):
            DAO method performing filesystem operations which may raise OSError.

    Returns:
        Callable[..., Any]:
            Wrapped method which raises DataStoreError on I/O errors.
    """

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except OSError as e:
            raise DataStoreError(f"Can't access data directory {self.directory}: {e.strerror or e}.") from e

    return wrapper
