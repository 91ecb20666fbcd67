"""Data Access Object (DAO) implementation for managing shortened URLs as JSON files

Each link is stored as one JSON document, `<directory>/<shortcode>.json`:

    {
        "target": "https://example.com/page",
        "shortcode": "abc123",
        "created_at": "2025-10-15T12:00:00Z",
        "expiry": null,
        "clicks": 1,
        "visits": [{"timestamp": "2025-10-15T12:05:00Z", "origin": "203.0.113.7"}]
    }

Responsibilities:
    - Publish new documents atomically (never a partial or duplicate file);
    - Serialize read-modify-write of one document with a per-shortcode lock;
    - fsync every write before acknowledging it.

NOTE: Locks are per process. Several processes sharing one directory can
      insert safely (the hard link is atomic), but their visits could race.
      Use ShortURLRedisDAO for multi-process deployments.

Classes:
    ShortURLFileDAO:
        DAO for storing and retrieving UrlRecord in a local directory.

Example:
    >>> dao = ShortURLFileDAO('/var/lib/clickshortener')
    >>> dao.insert(UrlRecord(target='https://example.com', shortcode='abc123', created_at=datetime.now(UTC)))
    <ShortURLFileDAO>
    >>> dao.record_visit('abc123', VisitEvent(timestamp=datetime.now(UTC), origin='203.0.113.7'))
    1
"""

import os
import json
import logging
import tempfile
import threading
import weakref
from pathlib import Path

from beartype import beartype

from clickshortener.models import UrlRecord, VisitEvent
from clickshortener.dao.base import ShortURLBaseDAO
from clickshortener.dao.file.helpers import handle_file_io_error
from clickshortener.dao.exceptions import DataStoreError, ShortURLAlreadyExistsError, ShortURLNotFoundError
from clickshortener.utils.helpers import is_valid_shortcode


logger = logging.getLogger(__name__)


class ShortURLFileDAO(ShortURLBaseDAO):
    """File-based Data Access Object (DAO) for managing short URL mappings

    Attributes:
        directory (Path):
            Directory holding one JSON document per link.
        fsync (bool):
            If True (default), fsync files and the directory before acknowledging writes.
    """

    def __init__(self, directory: str | os.PathLike, fsync: bool = True):
        self.directory = Path(directory)
        self.fsync = fsync
        # Locks live only while a visit holds them
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DataStoreError(f"Can't create data directory {self.directory}: {e.strerror or e}.") from e

    @handle_file_io_error
    @beartype
    def insert(self, record: UrlRecord, **kwargs) -> 'ShortURLFileDAO':
        """Insert a link record as a new JSON document

        The document is fully written and fsynced under a temporary name, then
        hard-linked to its final name. link() fails if the name already exists,
        which makes the uniqueness check and the publication a single atomic
        filesystem operation. If the directory can't be fsynced afterwards,
        the document is removed again before the error is raised.

        Raises:
            ShortURLAlreadyExistsError:
                If a link with the same shortcode already exists.
            DataStoreError:
                On I/O errors.
        """
        path = self._path(record.shortcode)
        document = record.to_document() | {'clicks': 0, 'visits': []}

        tmp_path = self._write_temp(document)
        try:
            os.link(tmp_path, path)
        except FileExistsError:
            raise ShortURLAlreadyExistsError(f"Short URL with code '{record.shortcode}' already exists.") from None
        finally:
            os.unlink(tmp_path)

        try:
            self._sync_directory()
        except OSError:
            # Unacknowledged inserts must not stay visible
            os.unlink(path)
            raise
        return self

    @handle_file_io_error
    @beartype
    def get(self, shortcode: str, **kwargs) -> UrlRecord:
        """Retrieve a link record with its click counter and visit log

        Documents are only ever replaced atomically, so no lock is needed to
        read a consistent snapshot.

        Raises:
            ShortURLNotFoundError:
                If no link with the given shortcode exists.
            DataStoreError:
                On I/O errors or a corrupt document.
        """
        return self._to_record(shortcode, self._read(shortcode))

    @handle_file_io_error
    @beartype
    def record_visit(self, shortcode: str, visit: VisitEvent, **kwargs) -> int:
        """Append a visit and increment the click counter of a link

        The read-modify-write runs under the link's own lock: visits to the
        same link are serialized, visits to different links are not.

        NOTE: The updated document replaces the old one before the directory
              is fsynced. If that fsync fails a DataStoreError is raised but
              the visit stays recorded, so a failed redirect may still count
              as a click.

        Returns:
            int: click count after this visit.

        Raises:
            ShortURLNotFoundError:
                If no link with the given shortcode exists.
            DataStoreError:
                On I/O errors or a corrupt document.
        """
        with self._lock_for(shortcode):
            document = self._read(shortcode)
            visits = document.setdefault('visits', [])
            visits.append(visit.to_document())
            document['clicks'] = len(visits)

            tmp_path = self._write_temp(document)
            try:
                os.replace(tmp_path, self._path(shortcode))
            except OSError:
                os.unlink(tmp_path)
                raise
            self._sync_directory()

        return document['clicks']

    def _path(self, shortcode: str) -> Path:
        if not is_valid_shortcode(shortcode):
            raise ValueError(f'Shortcode must be alphanumeric (given value: {shortcode!r}).')
        return self.directory / f'{shortcode}.json'

    def _lock_for(self, shortcode: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(shortcode)
            if lock is None:
                lock = self._locks[shortcode] = threading.Lock()
            return lock

    def _read(self, shortcode: str) -> dict:
        if not is_valid_shortcode(shortcode):
            raise ShortURLNotFoundError(f"Short URL with code '{shortcode}' not found.")
        path = self._path(shortcode)
        try:
            with open(path, encoding='utf-8') as f:
                return json.load(f)
        except FileNotFoundError:
            raise ShortURLNotFoundError(f"Short URL with code '{shortcode}' not found.") from None
        except json.JSONDecodeError as e:
            raise DataStoreError(f"Short URL with code '{shortcode}' has a corrupt document at {path}.") from e

    def _to_record(self, shortcode: str, document: dict) -> UrlRecord:
        try:
            visits = [VisitEvent.from_document(visit) for visit in document.get('visits', [])]
            return UrlRecord.from_document(document, visits=visits, clicks=document.get('clicks', len(visits)))
        except (ValueError, KeyError, TypeError) as e:
            raise DataStoreError(f"Short URL with code '{shortcode}' has a corrupt document.") from e

    def _write_temp(self, document: dict) -> str:
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix='.tmp-', suffix='.json')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(document, f)
                f.flush()
                if self.fsync:
                    os.fsync(f.fileno())
        except BaseException:
            os.unlink(tmp_path)
            raise
        return tmp_path

    def _sync_directory(self) -> None:
        # New and replaced directory entries are durable only once the directory is fsynced
        if not self.fsync or not hasattr(os, 'O_DIRECTORY'):
            return
        fd = os.open(self.directory, os.O_RDONLY | os.O_DIRECTORY)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)
