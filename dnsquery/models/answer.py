"""Per-subject answer and lookup outcome models."""

from dataclasses import dataclass, field
from typing import Any, Iterator, List, Tuple

from dnsquery.models.dns_error import DNSQueryError
from dnsquery.models.query_type import QueryType
from dnsquery.models.records import record_to_json
from dnsquery.models.subject import Subject


@dataclass
class RecordResult:
    """Outcome of one query type for one subject.

    Attributes:
        results: Typed records returned by the resolver.
        error: Classified error if the query failed.
        searched: True once the query has completed (success or failure).
        elapsed_time_ms: Query duration in milliseconds.

    Invariants:
        - searched only ever transitions False -> True.
    """

    results: List[Any] = field(default_factory=list)
    error: DNSQueryError | None = None
    searched: bool = False
    elapsed_time_ms: int | None = None

    def to_json(self) -> dict:
        return {
            "results": [record_to_json(r) for r in self.results],
            "error": self.error.to_json() if self.error else None,
            "searched": self.searched,
            "elapsed_time_ms": self.elapsed_time_ms,
        }


@dataclass
class Answer:
    """Ordered mapping of query type to record result for one subject.

    Entries are kept as an ordered list of (QueryType, RecordResult) pairs;
    the list order is the display order, so ``order`` is always a
    permutation of the answer's query types.

    Attributes:
        entries: (QueryType, RecordResult) pairs in display order.
        total_answers: Running count of results across all query types.
    """

    entries: List[Tuple[QueryType, RecordResult]] = field(default_factory=list)
    total_answers: int = 0

    @property
    def order(self) -> List[QueryType]:
        return [query_type for query_type, _ in self.entries]

    def __getitem__(self, query_type: QueryType) -> RecordResult:
        for entry_type, record in self.entries:
            if entry_type == query_type:
                return record
        raise KeyError(query_type)

    def __contains__(self, query_type: object) -> bool:
        return any(entry_type == query_type for entry_type, _ in self.entries)

    def __iter__(self) -> Iterator[Tuple[QueryType, RecordResult]]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, query_type: QueryType) -> RecordResult | None:
        try:
            return self[query_type]
        except KeyError:
            return None

    def replace(self, query_type: QueryType, record: RecordResult) -> None:
        """Replace the record for an existing query type, keeping its position.

        Raises:
            KeyError: If the query type is not part of this answer.
        """
        for index, (entry_type, _) in enumerate(self.entries):
            if entry_type == query_type:
                self.entries[index] = (query_type, record)
                return
        raise KeyError(query_type)

    def to_json(self) -> dict:
        return {
            "order": [query_type.value for query_type in self.order],
            "records": {
                query_type.value: record.to_json()
                for query_type, record in self.entries
            },
        }


@dataclass
class LookupDetails:
    """Detailed result of a subject lookup.

    Attributes:
        answer: Sorted per-type answer.
        total_answers: Number of results across all query types.
        servers: DNS servers the resolver was configured with.
        domain_not_found: Domain lookup returned "not found" (domains only).
        reverse_dns_not_found: Reverse lookup returned "not found" (IPs only).
    """

    answer: Answer
    total_answers: int
    servers: List[str]
    domain_not_found: bool
    reverse_dns_not_found: bool

    def to_json(self) -> dict:
        return {
            "answer": self.answer.to_json(),
            "total_answers": self.total_answers,
            "servers": list(self.servers),
            "domain_not_found": self.domain_not_found,
            "reverse_dns_not_found": self.reverse_dns_not_found,
        }


@dataclass
class LookupOutcome:
    """Final result for one subject of a batch.

    Attributes:
        subject: The subject that was looked up.
        summary_tags: Short human-readable summary strings.
        details: Detailed result, or None when the visibility filter
            suppressed an empty answer (a miss).
    """

    subject: Subject
    summary_tags: List[str]
    details: LookupDetails | None

    @property
    def is_miss(self) -> bool:
        return self.details is None

    def to_json(self) -> dict:
        """Serialize to JSON-compatible dict.

        Returns:
            dict: JSON-serializable representation.
        """
        return {
            "subject": self.subject.to_json(),
            "data": {
                "summary": list(self.summary_tags),
                "details": self.details.to_json() if self.details else None,
            },
        }
