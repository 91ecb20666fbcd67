from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from clickshortener.utils.helpers import isoformat, parse_timestamp


# fmt: off
@dataclass(frozen=True)
class VisitContext:
    origin: str = ''                    # Visitor origin (IP address) as resolved by the HTTP layer


@dataclass(frozen=True)
class VisitEvent:
    timestamp: datetime                 # Moment the redirect was served (UTC)
    origin: str                         # Visitor origin (IP address)
    geo: dict[str, Any] | None = None   # Best-effort geo annotation

    def to_document(self) -> dict[str, Any]:
        document = {'timestamp': isoformat(self.timestamp), 'origin': self.origin}
        if self.geo is not None:
            document['geo'] = self.geo
        return document

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> 'VisitEvent':
        return cls(
            timestamp=parse_timestamp(document['timestamp']),
            origin=document.get('origin', ''),
            geo=document.get('geo'),
        )


@dataclass(frozen=True)
class UrlRecord:
    target: str                         # Original long URL
    shortcode: str                      # Unique short identifier of shortened URL
    created_at: datetime                # Creation moment (UTC)
    expiry: datetime | None = None      # Moment after which the link stops redirecting, None = never
    clicks: int = 0                     # Number of recorded visits
    visits: tuple[VisitEvent, ...] = field(default_factory=tuple)  # Append-only visit log
# fmt: on

    def is_expired(self, now: datetime) -> bool:
        """Return True once `now` is strictly past the expiry (never for links without one)."""
        return self.expiry is not None and self.expiry < now

    def to_document(self) -> dict[str, Any]:
        """Serialize the immutable part of the record (target, shortcode, timestamps)."""
        return {
            'target': self.target,
            'shortcode': self.shortcode,
            'created_at': isoformat(self.created_at),
            'expiry': isoformat(self.expiry) if self.expiry is not None else None,
        }

    @classmethod
    def from_document(cls, document: dict[str, Any], visits: list[VisitEvent] | tuple[VisitEvent, ...] = (), clicks: int | None = None) -> 'UrlRecord':
        expiry = document.get('expiry')
        visits = tuple(visits)
        return cls(
            target=document['target'],
            shortcode=document['shortcode'],
            created_at=parse_timestamp(document['created_at']),
            expiry=parse_timestamp(expiry) if expiry is not None else None,
            clicks=len(visits) if clicks is None else clicks,
            visits=visits,
        )


@dataclass(frozen=True)
class ShortenResult:
    """Outcome of a successful shorten request.

    Attributes:
        shortcode (str):
            Shortcode assigned to the link (custom or generated).
        url (str):
            The original URL.
        short_url (str):
            Fully-qualified public short URL, e.g. 'http://localhost:8080/go/abc123'.
        expiry (datetime | None):
            Expiry of the link, None if it never expires.
    """

    shortcode: str
    url: str
    short_url: str
    expiry: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        body = {'shortcode': self.shortcode, 'url': self.url, 'shortUrl': self.short_url}
        if self.expiry is not None:
            body['expiry'] = isoformat(self.expiry)
        return body


@dataclass(frozen=True)
class StatsSnapshot:
    """Read-only view of a link's click statistics.

    Attributes:
        url (str):
            The original URL.
        shortcode (str):
            The link's shortcode.
        clicks (int):
            Number of recorded visits (always equal to len(visits)).
        visits (tuple[VisitEvent, ...]):
            Full visit log, oldest first.
        created_at (datetime):
            Creation moment of the link.
        expiry (datetime | None):
            Expiry of the link, None if it never expires.
    """

    url: str
    shortcode: str
    clicks: int
    visits: tuple[VisitEvent, ...]
    created_at: datetime
    expiry: datetime | None = None

    @classmethod
    def from_record(cls, record: UrlRecord) -> 'StatsSnapshot':
        return cls(
            url=record.target,
            shortcode=record.shortcode,
            clicks=record.clicks,
            visits=record.visits,
            created_at=record.created_at,
            expiry=record.expiry,
        )

    def to_dict(self) -> dict[str, Any]:
        body = {
            'url': self.url,
            'shortcode': self.shortcode,
            'clicks': self.clicks,
            'visits': [visit.to_document() for visit in self.visits],
            'createdAt': isoformat(self.created_at),
        }
        if self.expiry is not None:
            body['expiry'] = isoformat(self.expiry)
        return body
