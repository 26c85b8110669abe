"""Answer aggregation for subject lookups.

Builds the blank per-subject answer, merges completed queries into it,
detects "not found" conditions, sorts record types for display and derives
the summary tags.
"""

from typing import Any, List

from dnsquery.models.answer import Answer, LookupDetails, RecordResult
from dnsquery.models.dns_error import DNSQueryError
from dnsquery.models.query_type import DOMAIN_QUERY_TYPES, QueryType, ResultsToShow
from dnsquery.models.subject import Subject
from dnsquery.services.error_classifier import DOMAIN_NOT_FOUND_MESSAGE
from dnsquery.services.resolver import REVERSE_SYSCALL


def blank_answer(subject: Subject) -> Answer:
    """Create the empty answer for a subject.

    IP subjects only get a PTR entry, marked searched up front since the
    reverse lookup always runs. Domain subjects get all seven domain types,
    unsearched.

    Args:
        subject: Subject being looked up.

    Returns:
        Answer: Answer with empty results for every applicable type.
    """
    if subject.is_ip:
        return Answer(entries=[(QueryType.PTR, RecordResult(searched=True))])

    return Answer(
        entries=[(query_type, RecordResult()) for query_type in DOMAIN_QUERY_TYPES]
    )


def record_completion(
    answer: Answer,
    query_type: QueryType,
    results: Any = None,
    error: DNSQueryError | None = None,
    elapsed_time_ms: int | None = None,
) -> int:
    """Merge a finished query into the answer.

    Args:
        answer: Answer to update.
        query_type: Query type that completed.
        results: Records on success; a bare value is wrapped in a list.
        error: Classified error on failure.
        elapsed_time_ms: Query duration.

    Returns:
        int: Number of results added to ``answer.total_answers``.

    Raises:
        KeyError: If the query type is not part of the answer.
    """
    record = answer[query_type]
    added = 0
    try:
        record.elapsed_time_ms = elapsed_time_ms
        if error is not None:
            record.error = error
        elif results is not None:
            record.results = (
                list(results) if isinstance(results, (list, tuple)) else [results]
            )
            added = len(record.results)
            answer.total_answers += added
    finally:
        record.searched = True
    return added


def _record_errors(answer: Answer) -> List[DNSQueryError]:
    return [record.error for _, record in answer if record.error is not None]


def is_domain_not_found(answer: Answer) -> bool:
    """Check if a forward query reported the domain does not exist.

    An ENOTFOUND raised by a reverse lookup ("getHostByAddr") shares the
    same message and is excluded.
    """
    return any(
        error.message == DOMAIN_NOT_FOUND_MESSAGE and error.syscall != REVERSE_SYSCALL
        for error in _record_errors(answer)
    )


def is_reverse_not_found(answer: Answer) -> bool:
    """Check if a reverse lookup found no hostname for the address."""
    return any(
        error.code == "ENOTFOUND" and error.syscall == REVERSE_SYSCALL
        for error in _record_errors(answer)
    )


def sort_answer(answer: Answer) -> Answer:
    """Sort answer entries for display.

    Types with the most results come first; among equal counts, searched
    types come before unsearched ones. The sort is stable.

    Returns:
        Answer: The same answer, sorted in place.
    """
    answer.entries.sort(
        key=lambda entry: (-len(entry[1].results), not entry[1].searched)
    )
    return answer


def _more_answers_tag(total_answers: int) -> List[str]:
    if total_answers > 1:
        return [f"+{total_answers - 1} answers"]
    return []


def _primary_tag(query_type: QueryType, value: Any) -> str:
    if query_type == QueryType.MX:
        return f"MX {value.exchange}"
    if query_type == QueryType.SOA:
        return f"SOA {value.nsname}"
    if query_type in (QueryType.A, QueryType.AAAA):
        return f"{query_type.value} {value.address}"
    return f"{query_type.value} {value}"


def summary_tags(
    answer: Answer,
    domain_not_found: bool,
    reverse_not_found: bool,
    total_answers: int,
) -> List[str]:
    """Build the short summary for a lookup.

    An A record is always preferred when available; otherwise the first
    type in display order with a result is summarized.

    Args:
        answer: Sorted answer.
        domain_not_found: Result of is_domain_not_found.
        reverse_not_found: Result of is_reverse_not_found.
        total_answers: Total results across all types.

    Returns:
        List[str]: Summary tags, e.g. ["A 93.184.216.34", "+2 answers"].
    """
    if domain_not_found:
        return ["Domain not found"]

    if reverse_not_found:
        return ["IP not found"]

    a_record = answer.get(QueryType.A)
    if a_record is not None and a_record.results:
        return [_primary_tag(QueryType.A, a_record.results[0])] + _more_answers_tag(
            total_answers
        )

    if total_answers > 0:
        query_type, record = answer.entries[0]
        if not record.results:
            return ["No Answers"]
        return [_primary_tag(query_type, record.results[0])] + _more_answers_tag(
            total_answers
        )

    return ["No Answers"]


def is_miss(total_answers: int, results_to_show: ResultsToShow) -> bool:
    """Check if the visibility filter suppresses this lookup."""
    if results_to_show == ResultsToShow.ANSWER_ONLY:
        return total_answers == 0
    return False


def apply_query_result(
    details: LookupDetails, query_type: QueryType, record: RecordResult | None
) -> LookupDetails:
    """Patch held lookup details with a follow-up single-type query result.

    Used when a previously unsearched type is run on demand. A None record
    (the follow-up produced no answer) leaves an empty, searched entry.

    Args:
        details: Details from an earlier lookup.
        query_type: Type that was queried.
        record: RecordResult returned by the follow-up query.

    Returns:
        LookupDetails: The same details, updated and re-sorted.
    """
    if record is None:
        record = RecordResult()
    record.searched = True

    previous = details.answer[query_type]
    details.answer.replace(query_type, record)
    delta = len(record.results) - len(previous.results)
    details.answer.total_answers += delta
    details.total_answers += delta
    sort_answer(details.answer)
    return details
