"""IP address and DNS server address utilities."""

import ipaddress
from typing import List, Tuple


DEFAULT_DNS_PORT = 53


def is_ip_address(value: str) -> bool:
    """Check if string is a valid IPv4 or IPv6 address.

    Args:
        value: String to check.

    Returns:
        bool: True if value parses as an IP address, False otherwise.

    Examples:
        >>> is_ip_address("203.0.113.45")
        True
        >>> is_ip_address("2001:db8::1")
        True
        >>> is_ip_address("example.com")
        False
    """
    try:
        ipaddress.ip_address(value)
        return True
    except ValueError:
        return False


def is_private_ip(value: str) -> bool:
    """Check if an IP address is private (RFC 1918, loopback, link-local, ULA).

    Args:
        value: IP address string.

    Returns:
        bool: True if private, False if public or not an IP address.

    Examples:
        >>> is_private_ip("192.168.1.1")
        True
        >>> is_private_ip("8.8.8.8")
        False
    """
    try:
        return ipaddress.ip_address(value).is_private
    except ValueError:
        return False


def parse_server_address(entry: str) -> Tuple[str, int]:
    """Split a DNS server entry into host and port.

    Accepts ``1.1.1.1``, ``1.1.1.1:5353``, ``2001:db8::1`` and
    ``[2001:db8::1]:5353``.

    Args:
        entry: Server address, optionally with a port.

    Returns:
        Tuple[str, int]: (ip_address, port)

    Raises:
        ValueError: If the host is not an IP address or the port is invalid.

    Examples:
        >>> parse_server_address("8.8.8.8")
        ('8.8.8.8', 53)
        >>> parse_server_address("[::1]:5353")
        ('::1', 5353)
    """
    entry = entry.strip()
    port_str = None

    if entry.startswith("["):
        host, sep, rest = entry[1:].partition("]")
        if not sep:
            raise ValueError(f"Invalid DNS server address: {entry}")
        if rest:
            if not rest.startswith(":"):
                raise ValueError(f"Invalid DNS server address: {entry}")
            port_str = rest[1:]
    elif entry.count(":") == 1:
        host, port_str = entry.split(":")
    else:
        # Bare IPv4 or unbracketed IPv6
        host = entry

    if not is_ip_address(host):
        raise ValueError(f"DNS server must be an IP address: {entry}")

    port = DEFAULT_DNS_PORT
    if port_str is not None:
        if not port_str.isdigit():
            raise ValueError(f"Invalid DNS server port: {entry}")
        port = int(port_str)
        if not 1 <= port <= 65535:
            raise ValueError(f"DNS server port must be between 1 and 65535: {entry}")

    return host, port


def parse_server_list(value: str) -> List[Tuple[str, int]]:
    """Parse a comma delimited list of DNS server addresses.

    Args:
        value: e.g. "8.8.8.8, 1.1.1.1:5353".

    Returns:
        List[Tuple[str, int]]: Parsed (ip_address, port) pairs, in order.

    Raises:
        ValueError: If any entry is invalid.
    """
    return [
        parse_server_address(entry) for entry in value.split(",") if entry.strip()
    ]


def format_server_address(host: str, port: int) -> str:
    """Format a server address, omitting the default port.

    Examples:
        >>> format_server_address("8.8.8.8", 53)
        '8.8.8.8'
        >>> format_server_address("::1", 5353)
        '[::1]:5353'
    """
    if port == DEFAULT_DNS_PORT:
        return host
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"
