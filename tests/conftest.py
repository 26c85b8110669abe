"""pytest fixtures for testing."""

import asyncio
from collections import defaultdict

import pytest

from dnsquery.models.dns_error import DNSQueryError
from dnsquery.models.records import AddressRecord, MxRecord


class FakeResolver:
    """Scripted stand-in for ResolverAdapter.

    Responses are keyed by (name, QueryType) for forward queries and by IP
    for reverse queries. A response that is an exception is raised.
    Unscripted queries return no records.
    """

    def __init__(self, forward=None, reverse=None, delays=None):
        self.forward = forward or {}
        self.reverse = reverse or {}
        self.delays = delays or {}
        self.calls = []
        self.servers = ["8.8.8.8"]
        self.set_server_calls = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.in_flight_by_name = defaultdict(int)
        self.max_in_flight_by_name = defaultdict(int)
        self.max_names_in_flight = 0

    def set_server(self, servers):
        self.set_server_calls.append(servers)
        self.servers = [s.strip() for s in servers.split(",")]
        return True

    def get_servers(self):
        return list(self.servers)

    async def forward_query(self, name, query_type):
        return await self._respond(name, (name, query_type), self.forward.get((name, query_type), []))

    async def reverse_query(self, ip):
        return await self._respond(ip, ip, self.reverse.get(ip, []))

    async def _respond(self, name, key, response):
        self.calls.append(key)
        self.in_flight += 1
        self.in_flight_by_name[name] += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        self.max_in_flight_by_name[name] = max(
            self.max_in_flight_by_name[name], self.in_flight_by_name[name]
        )
        names_in_flight = sum(1 for count in self.in_flight_by_name.values() if count)
        self.max_names_in_flight = max(self.max_names_in_flight, names_in_flight)
        try:
            await asyncio.sleep(self.delays.get(key, 0))
            if isinstance(response, BaseException):
                raise response
            return response
        finally:
            self.in_flight -= 1
            self.in_flight_by_name[name] -= 1


def dns_error(code, syscall, message="raw resolver error", hostname=None):
    """Build an unclassified DNSQueryError as the resolver adapter raises it."""
    return DNSQueryError(message, code=code, syscall=syscall, hostname=hostname)


@pytest.fixture
def fake_resolver():
    """Empty scripted resolver."""
    return FakeResolver()


@pytest.fixture
def example_a_record():
    """A record for example.com."""
    return AddressRecord(address="93.184.216.34", ttl=300)


@pytest.fixture
def example_mx_records():
    """Two MX records for example.com."""
    return [
        MxRecord(exchange="mx1.example.com", priority=10),
        MxRecord(exchange="mx2.example.com", priority=20),
    ]


@pytest.fixture
def resolver_factory():
    """Factory for scripted resolvers: resolver_factory(forward=..., reverse=..., delays=...)."""
    return FakeResolver


@pytest.fixture
def make_dns_error():
    """Factory for raw resolver errors: make_dns_error(code, syscall)."""
    return dns_error
