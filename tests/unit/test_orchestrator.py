"""Unit tests for the lookup orchestrator."""

import asyncio
import itertools
from unittest.mock import patch

import pytest

from dnsquery.models.dns_error import DNSQueryError
from dnsquery.models.options import LookupOptions
from dnsquery.models.query_type import DOMAIN_QUERY_TYPES, QueryType, ResultsToShow
from dnsquery.models.records import AddressRecord
from dnsquery.models.subject import Subject
from dnsquery.services.orchestrator import LookupOrchestrator, gather_or_cancel


def run_batch(resolver, subjects, options, **kwargs):
    orchestrator = LookupOrchestrator(resolver, **kwargs)
    return asyncio.run(
        orchestrator.run([Subject.from_value(s) for s in subjects], options)
    )


class TestQueryFanOut:
    """Test which queries a subject issues."""

    def test_empty_query_types_default_to_a(self, resolver_factory):
        resolver = resolver_factory()
        options = LookupOptions(query_types=[])

        outcomes = run_batch(resolver, ["example.com"], options)

        assert resolver.calls == [("example.com", QueryType.A)]
        answer = outcomes[0].details.answer
        assert [t for t, r in answer if r.searched] == [QueryType.A]
        # Caller's options are left untouched
        assert options.query_types == []

    def test_one_query_per_configured_type(self, resolver_factory):
        resolver = resolver_factory()
        options = LookupOptions(query_types=list(DOMAIN_QUERY_TYPES))

        outcomes = run_batch(resolver, ["example.com"], options)

        assert sorted(call[1].value for call in resolver.calls) == sorted(
            t.value for t in DOMAIN_QUERY_TYPES
        )
        assert all(r.searched for _, r in outcomes[0].details.answer)

    def test_ip_subject_runs_only_reverse_lookup(self, resolver_factory):
        resolver = resolver_factory(reverse={"8.8.8.8": ["dns.google"]})
        options = LookupOptions(query_types=[QueryType.A, QueryType.MX])

        outcomes = run_batch(resolver, ["8.8.8.8"], options)

        assert resolver.calls == ["8.8.8.8"]
        details = outcomes[0].details
        assert details.answer.order == [QueryType.PTR]
        assert details.answer[QueryType.PTR].results == ["dns.google"]
        assert outcomes[0].summary_tags == ["PTR dns.google"]

    def test_elapsed_time_is_recorded(self, resolver_factory, example_a_record):
        resolver = resolver_factory(forward={("example.com", QueryType.A): [example_a_record]})

        outcomes = run_batch(resolver, ["example.com"], LookupOptions())

        elapsed = outcomes[0].details.answer[QueryType.A].elapsed_time_ms
        assert isinstance(elapsed, int)
        assert elapsed >= 0

    def test_elapsed_time_ignores_wall_clock_steps(self, resolver_factory, example_a_record):
        resolver = resolver_factory(forward={("example.com", QueryType.A): [example_a_record]})
        wall_clock = itertools.count(1_700_000_000, -10)

        with patch("dnsquery.services.orchestrator.time.time", side_effect=lambda: next(wall_clock)):
            outcomes = run_batch(resolver, ["example.com"], LookupOptions())

        assert outcomes[0].details.answer[QueryType.A].elapsed_time_ms >= 0


class TestPrivateIpFilter:
    """Test the private IP only option."""

    def test_public_ip_skipped(self, resolver_factory):
        resolver = resolver_factory()
        options = LookupOptions(private_ip_only=True)

        outcomes = run_batch(resolver, ["8.8.8.8", "10.0.0.1", "example.com"], options)

        assert [o.subject.value for o in outcomes] == ["10.0.0.1", "example.com"]
        assert "8.8.8.8" not in resolver.calls

    def test_public_ip_looked_up_without_option(self, resolver_factory):
        resolver = resolver_factory()

        outcomes = run_batch(resolver, ["8.8.8.8"], LookupOptions())

        assert len(outcomes) == 1


class TestOutcomeAssembly:
    """Test outcome details and flags."""

    def test_details_include_servers_and_totals(self, resolver_factory, example_a_record):
        resolver = resolver_factory(forward={("example.com", QueryType.A): [example_a_record]})

        outcome = run_batch(resolver, ["example.com"], LookupOptions())[0]

        assert outcome.details.total_answers == 1
        assert outcome.details.servers == ["8.8.8.8"]
        assert outcome.details.domain_not_found is False
        assert outcome.details.reverse_dns_not_found is False

    def test_answer_is_sorted(self, resolver_factory, example_a_record, example_mx_records):
        resolver = resolver_factory(
            forward={
                ("example.com", QueryType.A): [example_a_record],
                ("example.com", QueryType.MX): example_mx_records,
            }
        )
        options = LookupOptions(query_types=[QueryType.A, QueryType.MX])

        outcome = run_batch(resolver, ["example.com"], options)[0]

        assert outcome.details.answer.order[:2] == [QueryType.MX, QueryType.A]

    def test_recoverable_error_recorded(self, resolver_factory, make_dns_error, example_a_record):
        resolver = resolver_factory(
            forward={
                ("example.com", QueryType.A): [example_a_record],
                ("example.com", QueryType.MX): make_dns_error("ENODATA", "queryMx"),
            }
        )
        options = LookupOptions(query_types=[QueryType.A, QueryType.MX])

        outcome = run_batch(resolver, ["example.com"], options)[0]

        mx = outcome.details.answer[QueryType.MX]
        assert mx.error.code == "ENODATA"
        assert mx.error.message == "DNS server returned an answer with no data."
        assert mx.searched is True
        assert outcome.details.answer[QueryType.A].results == [example_a_record]

    def test_domain_not_found_not_reported_for_ip(self, resolver_factory):
        # An IP's reverse error that happens to carry a forward syscall
        resolver = resolver_factory(
            reverse={"8.8.4.4": DNSQueryError("x", code="ENOTFOUND", syscall="queryA")}
        )

        outcome = run_batch(resolver, ["8.8.4.4"], LookupOptions())[0]

        assert outcome.summary_tags == ["Domain not found"]
        assert outcome.details.domain_not_found is False

    def test_server_option_applied(self, resolver_factory):
        resolver = resolver_factory()
        options = LookupOptions(dns_server="1.1.1.1")

        outcome = run_batch(resolver, ["example.com"], options)[0]

        assert resolver.set_server_calls == ["1.1.1.1"]
        assert outcome.details.servers == ["1.1.1.1"]

    def test_blank_server_option_not_applied(self, resolver_factory):
        resolver = resolver_factory()

        run_batch(resolver, ["example.com"], LookupOptions(dns_server=""))

        assert resolver.set_server_calls == []


class TestVisibilityFilter:
    """Test the results-to-show filter."""

    def test_answer_only_hides_empty(self, resolver_factory):
        resolver = resolver_factory()
        options = LookupOptions(results_to_show=ResultsToShow.ANSWER_ONLY)

        outcome = run_batch(resolver, ["example.com"], options)[0]

        assert outcome.details is None
        assert outcome.summary_tags == []

    def test_always_shows_empty(self, resolver_factory):
        resolver = resolver_factory()

        outcome = run_batch(resolver, ["example.com"], LookupOptions())[0]

        assert outcome.summary_tags == ["No Answers"]
        assert outcome.details.total_answers == 0

    def test_answer_only_shows_answers(self, resolver_factory, example_a_record):
        resolver = resolver_factory(forward={("example.com", QueryType.A): [example_a_record]})
        options = LookupOptions(results_to_show=ResultsToShow.ANSWER_ONLY)

        outcome = run_batch(resolver, ["example.com"], options)[0]

        assert outcome.details is not None


class TestConcurrency:
    """Test concurrency caps and ordering."""

    def test_output_follows_input_order(self, resolver_factory):
        subjects = ["slow.example", "fast.example", "mid.example"]
        resolver = resolver_factory(
            forward={
                (s, QueryType.A): [AddressRecord(address=f"192.0.2.{i}")]
                for i, s in enumerate(subjects, start=1)
            },
            delays={
                ("slow.example", QueryType.A): 0.05,
                ("mid.example", QueryType.A): 0.02,
            },
        )

        outcomes = run_batch(resolver, subjects, LookupOptions(), max_subjects_at_a_time=3)

        assert [o.subject.value for o in outcomes] == subjects
        assert [o.summary_tags for o in outcomes] == [
            ["A 192.0.2.1"],
            ["A 192.0.2.2"],
            ["A 192.0.2.3"],
        ]

    def test_subject_cap(self, resolver_factory):
        subjects = [f"host{i}.example" for i in range(6)]
        resolver = resolver_factory(
            delays={(s, QueryType.A): 0.01 for s in subjects}
        )

        run_batch(resolver, subjects, LookupOptions(), max_subjects_at_a_time=2)

        assert resolver.max_names_in_flight == 2

    def test_task_cap_per_subject(self, resolver_factory):
        resolver = resolver_factory(
            delays={("example.com", t): 0.01 for t in DOMAIN_QUERY_TYPES}
        )
        options = LookupOptions(query_types=list(DOMAIN_QUERY_TYPES))

        run_batch(resolver, ["example.com"], options, max_tasks_at_a_time=3)

        assert resolver.max_in_flight_by_name["example.com"] == 3

    def test_default_caps(self, resolver_factory):
        subjects = [f"host{i}.example" for i in range(4)]
        resolver = resolver_factory(
            delays={(s, t): 0.01 for s in subjects for t in DOMAIN_QUERY_TYPES}
        )
        options = LookupOptions(query_types=list(DOMAIN_QUERY_TYPES))

        run_batch(resolver, subjects, options)

        assert resolver.max_names_in_flight <= 2
        assert max(resolver.max_in_flight_by_name.values()) <= 5
        assert resolver.max_in_flight <= 10

    def test_invalid_caps_raise(self, resolver_factory):
        with pytest.raises(ValueError, match="at least 1"):
            LookupOrchestrator(resolver_factory(), max_subjects_at_a_time=0)


class TestFatalErrors:
    """Test fatal error propagation."""

    def test_fatal_error_fails_batch(self, resolver_factory, make_dns_error):
        resolver = resolver_factory(
            forward={("bad.example", QueryType.A): make_dns_error("ETIMEOUT", "queryA")}
        )

        with pytest.raises(DNSQueryError) as exc_info:
            run_batch(resolver, ["good.example", "bad.example"], LookupOptions())

        assert exc_info.value.code == "ETIMEOUT"
        assert exc_info.value.message == "Timeout while contacting DNS servers."

    def test_fatal_error_cancels_in_flight_queries(self, resolver_factory, make_dns_error):
        resolver = resolver_factory(
            forward={("example.com", QueryType.A): make_dns_error("EREFUSED", "queryA")},
            delays={("example.com", QueryType.MX): 5},
        )
        options = LookupOptions(query_types=[QueryType.A, QueryType.MX])

        with pytest.raises(DNSQueryError) as exc_info:
            run_batch(resolver, ["example.com"], options)

        assert exc_info.value.message == "DNS server refused query."
        assert resolver.in_flight == 0


def test_gather_or_cancel_preserves_order():
    """Test results come back in input order regardless of completion order."""

    async def delayed(value, delay):
        await asyncio.sleep(delay)
        return value

    results = asyncio.run(
        gather_or_cancel([delayed("a", 0.03), delayed("b", 0), delayed("c", 0.01)])
    )

    assert results == ["a", "b", "c"]


def test_gather_or_cancel_empty():
    """Test an empty task set returns an empty list."""
    assert asyncio.run(gather_or_cancel([])) == []
