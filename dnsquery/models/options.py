"""Per-batch lookup options."""

from dataclasses import dataclass, field
from typing import List

from dnsquery.models.query_type import DOMAIN_QUERY_TYPES, QueryType, ResultsToShow


@dataclass
class LookupOptions:
    """Options supplied with a lookup batch.

    Attributes:
        dns_server: Comma delimited DNS server list, each entry optionally
            with a port. Empty keeps the resolver's current servers.
        private_ip_only: Skip IP subjects that are not private.
        query_types: Domain query types to run; empty means A only.
        results_to_show: Visibility filter for empty answers.

    Raises:
        ValueError: If query_types contains a type that is not a domain type.
    """

    dns_server: str = ""
    private_ip_only: bool = False
    query_types: List[QueryType] = field(default_factory=lambda: [QueryType.A])
    results_to_show: ResultsToShow = ResultsToShow.ALWAYS

    def __post_init__(self) -> None:
        query_types = []
        for query_type in self.query_types:
            if not isinstance(query_type, QueryType):
                query_type = QueryType(query_type)
            if query_type not in DOMAIN_QUERY_TYPES:
                raise ValueError(
                    f"Query type {query_type.value} is not a domain query type"
                )
            # Preserve order, drop duplicates
            if query_type not in query_types:
                query_types.append(query_type)
        self.query_types = query_types

        if not isinstance(self.results_to_show, ResultsToShow):
            self.results_to_show = ResultsToShow(self.results_to_show)
