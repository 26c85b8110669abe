"""Follow-up requests from the presentation layer."""

import logging
from dataclasses import replace
from typing import Any, Dict

from dnsquery.models.answer import LookupDetails, LookupOutcome, RecordResult
from dnsquery.models.dns_error import DNSQueryError
from dnsquery.models.options import LookupOptions
from dnsquery.models.query_type import QueryType
from dnsquery.models.subject import Subject
from dnsquery.services.answer_aggregator import apply_query_result
from dnsquery.services.orchestrator import LookupOrchestrator


logger = logging.getLogger(__name__)


RETRY_LOOKUP = "RETRY_LOOKUP"
RUN_QUERY = "RUN_QUERY"


def _coerce_subject(value: Any) -> Subject:
    if isinstance(value, Subject):
        return value
    if isinstance(value, dict):
        return Subject.from_value(value.get("value", ""))
    return Subject.from_value(value)


class InteractiveQueryHandler:
    """Services RETRY_LOOKUP and RUN_QUERY messages by re-running lookups."""

    def __init__(self, orchestrator: LookupOrchestrator):
        self._orchestrator = orchestrator

    async def retry(self, subject: Subject, options: LookupOptions) -> LookupOutcome | None:
        """Re-run the full lookup for one subject.

        Returns:
            LookupOutcome | None: The subject's outcome, or None if the
            subject was skipped by the private IP filter.
        """
        outcomes = await self._orchestrator.run([subject], options)
        return outcomes[0] if outcomes else None

    async def run_single_query(
        self, subject: Subject, query_type: QueryType, options: LookupOptions
    ) -> RecordResult | None:
        """Run one query type for a subject on demand.

        Domain lookups are narrowed to ``query_type``; IP subjects always run
        their reverse lookup.

        Returns:
            RecordResult | None: Record for the requested type, or None when
            the lookup produced no details or no such record.
        """
        if subject.is_domain:
            options = replace(options, query_types=[query_type])

        outcomes = await self._orchestrator.run([subject], options)
        if not outcomes or outcomes[0].details is None:
            return None
        return outcomes[0].details.answer.get(query_type)

    async def refresh_query(
        self,
        details: LookupDetails,
        subject: Subject,
        query_type: QueryType,
        options: LookupOptions,
    ) -> LookupDetails:
        """Run one query type and merge its result into held lookup details."""
        record = await self.run_single_query(subject, query_type, options)
        return apply_query_result(details, query_type, record)

    async def on_message(self, payload: Dict[str, Any], options: LookupOptions) -> dict:
        """Dispatch a presentation layer message.

        Args:
            payload: ``{"action": "RETRY_LOOKUP", "subject": ...}`` or
                ``{"action": "RUN_QUERY", "subject": ..., "type": "MX"}``.
            options: Options to run the follow-up lookup with.

        Returns:
            dict: ``{"data": ...}`` for RETRY_LOOKUP, ``{"answer": ...}``
            for RUN_QUERY.

        Raises:
            ValueError: If the action or query type is unknown.
            DNSQueryError: If the lookup fails with a fatal error.
        """
        action = payload.get("action")
        subject = _coerce_subject(payload.get("subject"))

        if action == RETRY_LOOKUP:
            try:
                outcome = await self.retry(subject, options)
            except DNSQueryError:
                logger.error(f"Error retrying lookup for {subject.value}", exc_info=True)
                raise
            return {"data": outcome.to_json()["data"] if outcome else None}

        if action == RUN_QUERY:
            query_type = QueryType(payload.get("type"))
            try:
                record = await self.run_single_query(subject, query_type, options)
            except DNSQueryError:
                logger.error(
                    f"Error running {query_type.value} query for {subject.value}",
                    exc_info=True,
                )
                raise
            return {"answer": record.to_json() if record else None}

        raise ValueError(f"Unknown action: {action}")
