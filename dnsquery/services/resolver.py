"""Resolver adapter around dnspython's asyncio resolver."""

import errno
import logging
from typing import Any, List

import dns.asyncresolver
import dns.exception
import dns.name
import dns.nameserver
import dns.rcode
import dns.resolver

from dnsquery.models.dns_error import DNSQueryError
from dnsquery.models.query_type import QueryType
from dnsquery.models.records import AddressRecord, MxRecord, SoaRecord
from dnsquery.utils.ip_utils import format_server_address, parse_server_list


logger = logging.getLogger(__name__)


FORWARD_SYSCALLS = {
    QueryType.A: "queryA",
    QueryType.AAAA: "queryAaaa",
    QueryType.CNAME: "queryCname",
    QueryType.MX: "queryMx",
    QueryType.TXT: "queryTxt",
    QueryType.NS: "queryNs",
    QueryType.SOA: "querySoa",
}

REVERSE_SYSCALL = "getHostByAddr"

RCODE_CODES = {
    dns.rcode.SERVFAIL: "ESERVFAIL",
    dns.rcode.REFUSED: "EREFUSED",
    dns.rcode.NOTIMP: "ENOTIMP",
    dns.rcode.FORMERR: "EFORMERR",
}


def _last_server_error(exception: dns.exception.DNSException) -> tuple:
    """Return ``(error, response)`` of the last server attempt, if recorded.

    dnspython records each attempt as ``(server, tcp, port, error, response)``.
    """
    errors = exception.kwargs.get("errors") or []
    if not errors:
        return None, None
    return errors[-1][3], errors[-1][4]


def _timeout_code(exception: dns.exception.Timeout) -> str:
    error, _ = _last_server_error(exception)
    # Servers that kept refusing the connection until the lifetime ran out
    if isinstance(error, OSError) and error.errno:
        return errno.errorcode.get(error.errno, "ETIMEOUT")
    return "ETIMEOUT"


def _no_nameservers_code(exception: dns.resolver.NoNameservers) -> str:
    error, response = _last_server_error(exception)
    if isinstance(error, OSError) and error.errno:
        return errno.errorcode.get(error.errno, "ESERVFAIL")
    if response is not None:
        return RCODE_CODES.get(response.rcode(), "ESERVFAIL")
    if isinstance(error, str):
        try:
            return RCODE_CODES.get(dns.rcode.from_text(error), "ESERVFAIL")
        except dns.rcode.UnknownRcode:
            return "ESERVFAIL"
    return "ESERVFAIL"


def translate_exception(exception: Exception, syscall: str, hostname: str) -> DNSQueryError:
    """Translate a dnspython or socket exception into a coded DNSQueryError.

    Args:
        exception: Exception raised while resolving.
        syscall: Operation name (e.g. "queryA", "getHostByAddr").
        hostname: Name or address being resolved.

    Returns:
        DNSQueryError: Error carrying a resolver code, or no code when the
        exception has no known equivalent.
    """
    if isinstance(exception, dns.resolver.NXDOMAIN):
        code = "ENOTFOUND"
    elif isinstance(exception, dns.resolver.NoAnswer):
        code = "ENODATA"
    elif isinstance(exception, dns.exception.Timeout):
        code = _timeout_code(exception)
    elif isinstance(exception, dns.resolver.NoNameservers):
        code = _no_nameservers_code(exception)
    elif isinstance(exception, dns.name.NameTooLong):
        code = "EBADNAME"
    elif isinstance(exception, dns.exception.SyntaxError):
        # Reverse lookups only fail to parse on a malformed address
        code = "EINVAL" if syscall == REVERSE_SYSCALL else "EBADNAME"
    elif isinstance(exception, dns.exception.FormError):
        code = "EBADRESP"
    elif isinstance(exception, OSError) and exception.errno:
        code = errno.errorcode.get(exception.errno)
    elif isinstance(exception, ValueError):
        code = "EINVAL"
    else:
        code = None

    message = str(exception) or type(exception).__name__
    return DNSQueryError(message, code=code, syscall=syscall, hostname=hostname)


def _target_text(rdata: Any) -> str:
    return rdata.target.to_text(omit_final_dot=True)


def parse_forward_answer(answer: Any, query_type: QueryType) -> Any:
    """Convert a dnspython answer into typed record values.

    A and AAAA answers carry the RRset TTL on each record. SOA answers are
    returned as a single SoaRecord rather than a list.

    Args:
        answer: dnspython Answer (iterable of rdata with an ``rrset``).
        query_type: Query type that produced the answer.

    Returns:
        list of records, or a single SoaRecord for SOA queries.
    """
    if query_type in (QueryType.A, QueryType.AAAA):
        rrset = getattr(answer, "rrset", None)
        ttl = rrset.ttl if rrset is not None else None
        return [AddressRecord(address=rdata.address, ttl=ttl) for rdata in answer]

    if query_type == QueryType.MX:
        return [
            MxRecord(
                exchange=rdata.exchange.to_text(omit_final_dot=True),
                priority=rdata.preference,
            )
            for rdata in answer
        ]

    if query_type == QueryType.SOA:
        rdata = next(iter(answer))
        return SoaRecord(
            nsname=rdata.mname.to_text(omit_final_dot=True),
            hostmaster=rdata.rname.to_text(omit_final_dot=True),
            serial=rdata.serial,
            refresh=rdata.refresh,
            retry=rdata.retry,
            expire=rdata.expire,
            minttl=rdata.minimum,
        )

    if query_type == QueryType.TXT:
        return [
            "".join(s.decode("utf-8", errors="replace") for s in rdata.strings)
            for rdata in answer
        ]

    # CNAME, NS
    return [_target_text(rdata) for rdata in answer]


def _format_nameserver(nameserver: Any) -> str:
    if isinstance(nameserver, str):
        return nameserver
    address = getattr(nameserver, "address", None)
    if address is None:
        return str(nameserver)
    return format_server_address(address, getattr(nameserver, "port", 53))


class ResolverAdapter:
    """Uniform async access to forward and reverse DNS queries.

    Each adapter owns its resolver and the last applied server setting, so
    reconfiguration only happens when the requested servers change.

    Example:
        >>> adapter = ResolverAdapter(timeout=5)
        >>> adapter.set_server("8.8.8.8")
        True
        >>> adapter.set_server("8.8.8.8")
        False
    """

    def __init__(self, timeout: int = 5):
        """Initialize adapter.

        Args:
            timeout: Total lifetime of a single query in seconds.
        """
        try:
            self._resolver = dns.asyncresolver.Resolver()
        except dns.resolver.NoResolverConfiguration:
            # No system resolver config; servers must come from set_server()
            logger.warning("No system resolver configuration found")
            self._resolver = dns.asyncresolver.Resolver(configure=False)
        self._resolver.lifetime = timeout
        self._last_server: str | None = None

    @property
    def last_server(self) -> str | None:
        return self._last_server

    def set_server(self, servers: str) -> bool:
        """Point the resolver at the given servers unless already applied.

        Args:
            servers: Comma delimited server list; entries may include a port.

        Returns:
            bool: True if the resolver was reconfigured, False if the value
            was blank or unchanged.

        Raises:
            ValueError: If a server entry is not a valid IP address/port.
        """
        if not servers or servers == self._last_server:
            return False

        addresses = parse_server_list(servers)
        if not addresses:
            return False

        self._resolver.nameservers = [
            dns.nameserver.Do53Nameserver(host, port) for host, port in addresses
        ]
        self._last_server = servers
        logger.info(f"DNS server set to {servers}")
        return True

    def get_servers(self) -> List[str]:
        """Return the currently configured server list."""
        return [_format_nameserver(ns) for ns in self._resolver.nameservers]

    async def forward_query(self, name: str, query_type: QueryType) -> Any:
        """Run a forward query.

        Args:
            name: Domain name to resolve.
            query_type: One of the seven domain query types.

        Returns:
            Typed records (see parse_forward_answer).

        Raises:
            DNSQueryError: On any resolver failure.
        """
        syscall = FORWARD_SYSCALLS[query_type]
        try:
            answer = await self._resolver.resolve(name, query_type.value)
        except (dns.exception.DNSException, OSError, ValueError) as e:
            raise translate_exception(e, syscall, name) from e
        return parse_forward_answer(answer, query_type)

    async def reverse_query(self, ip: str) -> List[str]:
        """Run a reverse (PTR) lookup.

        Args:
            ip: IPv4 or IPv6 address.

        Returns:
            List[str]: Hostnames without the trailing dot.

        Raises:
            DNSQueryError: On any resolver failure, with syscall "getHostByAddr".
        """
        try:
            answer = await self._resolver.resolve_address(ip)
        except (dns.exception.DNSException, OSError, ValueError) as e:
            raise translate_exception(e, REVERSE_SYSCALL, ip) from e
        return [_target_text(rdata) for rdata in answer]
