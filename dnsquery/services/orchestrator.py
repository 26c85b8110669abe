"""Lookup orchestration across subjects and query types."""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, List, Sequence

from dnsquery.models.answer import LookupDetails, LookupOutcome
from dnsquery.models.dns_error import DNSQueryError
from dnsquery.models.options import LookupOptions
from dnsquery.models.query_type import QueryType
from dnsquery.models.subject import Subject
from dnsquery.services.answer_aggregator import (
    blank_answer,
    is_domain_not_found,
    is_miss,
    is_reverse_not_found,
    record_completion,
    sort_answer,
    summary_tags,
)
from dnsquery.services.error_classifier import classify_error, is_fatal_error
from dnsquery.services.logger import (
    log_batch_summary,
    log_query_error,
    log_subject_lookup,
)
from dnsquery.services.resolver import ResolverAdapter


logger = logging.getLogger(__name__)


MAX_SUBJECTS_AT_A_TIME = 2
MAX_TASKS_AT_A_TIME = 5


@dataclass
class QueryCompletion:
    """Result of one query task, merged into the answer after the task set settles."""

    query_type: QueryType
    results: Any = None
    error: DNSQueryError | None = None
    elapsed_time_ms: int | None = None


def _elapsed_ms(start_time: float) -> int:
    return int((time.monotonic() - start_time) * 1000)


async def gather_or_cancel(awaitables: Sequence[Awaitable[Any]]) -> List[Any]:
    """Run awaitables concurrently, returning results in input order.

    If any of them raises, the others are cancelled and awaited before the
    exception propagates.
    """
    tasks = [asyncio.ensure_future(aw) for aw in awaitables]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class LookupOrchestrator:
    """Resolves batches of subjects with bounded concurrency.

    Subjects run at most ``max_subjects_at_a_time`` at once; within a
    subject, at most ``max_tasks_at_a_time`` queries are in flight.

    Example:
        >>> orchestrator = LookupOrchestrator(ResolverAdapter())
        >>> outcomes = asyncio.run(
        ...     orchestrator.run([Subject.from_value("example.com")], LookupOptions())
        ... )
        >>> outcomes[0].summary_tags
        ['A 93.184.216.34']
    """

    def __init__(
        self,
        resolver: ResolverAdapter,
        max_subjects_at_a_time: int = MAX_SUBJECTS_AT_A_TIME,
        max_tasks_at_a_time: int = MAX_TASKS_AT_A_TIME,
    ):
        """Initialize orchestrator.

        Args:
            resolver: Resolver adapter shared by every query of a batch.
            max_subjects_at_a_time: Concurrency cap across subjects.
            max_tasks_at_a_time: Concurrency cap across one subject's queries.

        Raises:
            ValueError: If a concurrency cap is below 1.
        """
        if max_subjects_at_a_time < 1 or max_tasks_at_a_time < 1:
            raise ValueError("Concurrency limits must be at least 1")

        self._resolver = resolver
        self._max_subjects_at_a_time = max_subjects_at_a_time
        self._max_tasks_at_a_time = max_tasks_at_a_time

    async def run(
        self, subjects: Sequence[Subject], options: LookupOptions
    ) -> List[LookupOutcome]:
        """Look up a batch of subjects.

        Args:
            subjects: Domains and IPs to resolve.
            options: Batch options.

        Returns:
            List[LookupOutcome]: One outcome per subject that was looked up,
            in input order. Subjects skipped by the private IP filter have
            no outcome.

        Raises:
            DNSQueryError: If any query fails with a fatal error. No partial
                results are returned.
        """
        logger.debug(
            "Starting lookup batch",
            extra={
                "subjects": [subject.value for subject in subjects],
                "query_types": [query_type.value for query_type in options.query_types],
            },
        )
        batch_start = time.monotonic()

        if options.dns_server:
            self._resolver.set_server(options.dns_server)

        subject_semaphore = asyncio.Semaphore(self._max_subjects_at_a_time)

        async def bounded_lookup(subject: Subject) -> LookupOutcome | None:
            async with subject_semaphore:
                return await self._lookup_subject(subject, options)

        try:
            outcomes = await gather_or_cancel(
                [bounded_lookup(subject) for subject in subjects]
            )
        except DNSQueryError as e:
            logger.error(
                f"Error in lookup batch: {e}",
                extra={"code": e.code, "syscall": e.syscall, "hostname": e.hostname},
            )
            raise

        looked_up = [outcome for outcome in outcomes if outcome is not None]
        log_batch_summary(
            total_subjects=len(subjects),
            looked_up=len(looked_up),
            skipped=len(subjects) - len(looked_up),
            misses=sum(1 for outcome in looked_up if outcome.is_miss),
            total_answers=sum(
                outcome.details.total_answers
                for outcome in looked_up
                if outcome.details is not None
            ),
            duration_sec=time.monotonic() - batch_start,
        )
        return looked_up

    def _query_types_for(self, subject: Subject, options: LookupOptions) -> List[QueryType]:
        if subject.is_ip:
            return [QueryType.PTR]
        # Default to an A record lookup if no query types are configured
        return list(options.query_types) or [QueryType.A]

    async def _lookup_subject(
        self, subject: Subject, options: LookupOptions
    ) -> LookupOutcome | None:
        if options.private_ip_only and subject.is_ip and not subject.is_private:
            logger.debug(f"Ignoring non-private IP {subject.value}")
            return None

        subject_start = time.monotonic()
        answer = blank_answer(subject)
        query_types = self._query_types_for(subject, options)
        task_semaphore = asyncio.Semaphore(self._max_tasks_at_a_time)

        async def bounded_query(query_type: QueryType) -> QueryCompletion:
            async with task_semaphore:
                return await self._run_query(subject, query_type)

        completions = await gather_or_cancel(
            [bounded_query(query_type) for query_type in query_types]
        )
        for completion in completions:
            record_completion(
                answer,
                completion.query_type,
                results=completion.results,
                error=completion.error,
                elapsed_time_ms=completion.elapsed_time_ms,
            )

        sort_answer(answer)
        total_answers = answer.total_answers

        if is_miss(total_answers, options.results_to_show):
            outcome = LookupOutcome(subject=subject, summary_tags=[], details=None)
        else:
            domain_not_found = is_domain_not_found(answer)
            reverse_not_found = is_reverse_not_found(answer)
            outcome = LookupOutcome(
                subject=subject,
                summary_tags=summary_tags(
                    answer, domain_not_found, reverse_not_found, total_answers
                ),
                details=LookupDetails(
                    answer=answer,
                    total_answers=total_answers,
                    servers=self._resolver.get_servers(),
                    # Only report the not-found flag matching the subject kind
                    domain_not_found=subject.is_domain and domain_not_found,
                    reverse_dns_not_found=subject.is_ip and reverse_not_found,
                ),
            )

        log_subject_lookup(
            subject=subject.value,
            kind=subject.kind.value,
            searched_types=[query_type.value for query_type in query_types],
            total_answers=total_answers,
            summary=outcome.summary_tags,
            miss=outcome.is_miss,
            duration_ms=_elapsed_ms(subject_start),
        )
        return outcome

    async def _run_query(self, subject: Subject, query_type: QueryType) -> QueryCompletion:
        start_time = time.monotonic()
        try:
            if query_type == QueryType.PTR:
                results = await self._resolver.reverse_query(subject.value)
            else:
                results = await self._resolver.forward_query(subject.value, query_type)
        except DNSQueryError as e:
            elapsed_time_ms = _elapsed_ms(start_time)
            error = classify_error(e)
            fatal = is_fatal_error(error)
            log_query_error(
                subject=subject.value,
                query_type=query_type.value,
                code=error.code,
                syscall=error.syscall,
                message=error.message,
                fatal=fatal,
            )
            if fatal:
                raise error from e
            return QueryCompletion(
                query_type=query_type, error=error, elapsed_time_ms=elapsed_time_ms
            )

        return QueryCompletion(
            query_type=query_type,
            results=results,
            elapsed_time_ms=_elapsed_ms(start_time),
        )
