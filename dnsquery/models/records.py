"""Typed DNS record values returned by the resolver adapter."""

from dataclasses import asdict, dataclass, is_dataclass
from typing import Any


@dataclass(frozen=True)
class AddressRecord:
    """A or AAAA record with its TTL."""

    address: str
    ttl: int | None = None


@dataclass(frozen=True)
class MxRecord:
    """Mail exchange record."""

    exchange: str
    priority: int


@dataclass(frozen=True)
class SoaRecord:
    """Start of authority record.

    Attributes:
        nsname: Primary name server for the zone.
        hostmaster: Responsible party mailbox (in DNS name form).
        serial: Zone serial number.
        refresh: Secondary refresh interval in seconds.
        retry: Secondary retry interval in seconds.
        expire: Zone expiry in seconds.
        minttl: Negative caching TTL in seconds.
    """

    nsname: str
    hostmaster: str
    serial: int
    refresh: int
    retry: int
    expire: int
    minttl: int


def record_to_json(record: Any) -> Any:
    """Serialize a record value; plain strings pass through unchanged."""
    if is_dataclass(record):
        return asdict(record)
    return record
