"""Lookup subject model."""

from dataclasses import dataclass
from enum import Enum

from dnsquery.utils.ip_utils import is_ip_address, is_private_ip


class SubjectKind(Enum):
    """Kind of value being resolved."""

    DOMAIN = "domain"
    IP = "ip"


@dataclass(frozen=True)
class Subject:
    """A single domain name or IP address to resolve in a batch.

    Attributes:
        value: Raw domain name or IP address string.
        kind: Whether the value is a domain or an IP address.
        is_private: True for private (RFC 1918 and similar) IP addresses.
            Always False for domains.
    """

    value: str
    kind: SubjectKind
    is_private: bool = False

    @classmethod
    def from_value(cls, raw: str) -> "Subject":
        """Classify a raw string as a domain or IP subject.

        Args:
            raw: Domain name or IP address.

        Returns:
            Subject: Classified subject.

        Raises:
            ValueError: If the value is empty.

        Examples:
            >>> Subject.from_value("10.0.0.1")
            Subject(value='10.0.0.1', kind=<SubjectKind.IP: 'ip'>, is_private=True)
        """
        value = raw.strip() if raw else ""
        if not value:
            raise ValueError("Subject value cannot be empty")

        if is_ip_address(value):
            return cls(value=value, kind=SubjectKind.IP, is_private=is_private_ip(value))
        return cls(value=value, kind=SubjectKind.DOMAIN)

    @property
    def is_ip(self) -> bool:
        return self.kind == SubjectKind.IP

    @property
    def is_domain(self) -> bool:
        return self.kind == SubjectKind.DOMAIN

    def to_json(self) -> dict:
        """Serialize to JSON-compatible dict."""
        return {
            "value": self.value,
            "kind": self.kind.value,
            "is_private": self.is_private,
        }
