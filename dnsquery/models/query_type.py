"""DNS query type and result filter enumerations."""

from enum import Enum


class QueryType(Enum):
    """Record types a lookup can issue.

    The seven forward types apply to domain subjects; PTR is the only
    type issued for IP subjects (reverse lookup).
    """

    A = "A"
    AAAA = "AAAA"
    CNAME = "CNAME"
    MX = "MX"
    TXT = "TXT"
    NS = "NS"
    SOA = "SOA"
    PTR = "PTR"


# Initial display order for domain answers
DOMAIN_QUERY_TYPES = (
    QueryType.A,
    QueryType.AAAA,
    QueryType.CNAME,
    QueryType.MX,
    QueryType.TXT,
    QueryType.NS,
    QueryType.SOA,
)


class ResultsToShow(Enum):
    """Visibility filter applied to finished lookups."""

    ALWAYS = "always"  # Every subject gets a result
    ANSWER_ONLY = "answerOnly"  # Subjects with zero answers are a miss
