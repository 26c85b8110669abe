"""DNS error classification.

Maps raw resolver errors to human-readable messages and decides whether a
failed query is recoverable (recorded on its record type) or fatal (aborts
the batch).
"""

import errno

from dnsquery.models.dns_error import DNSQueryError


DNS_ERRORS = {
    "ENODATA": "DNS server returned an answer with no data.",
    "EFORMERR": "DNS server claims query was misformatted.",
    "ESERVFAIL": "DNS server returned general failure.",
    "ENOTFOUND": "Domain name not found.",
    "ENOTIMP": "DNS server does not implement the requested operation.",
    "EREFUSED": "DNS server refused query.",
    "EBADQUERY": "Misformatted DNS query.",
    "EBADNAME": "Misformatted host name.",
    "EBADFAMILY": "Unsupported address family.",
    "EBADRESP": "Misformatted DNS reply.",
    "ECONNREFUSED": "Could not contact DNS servers.",
    "ETIMEOUT": "Timeout while contacting DNS servers.",
    "EEOF": "End of file.",
    "EFILE": "Error reading file.",
    "ENOMEM": "Out of memory.",
    "EDESTRUCTION": "Channel is being destroyed.",
    "EBADSTR": "Misformatted string.",
    "EBADFLAGS": "Illegal flags specified.",
    "ENONAME": "Given host name is not numeric.",
    "EBADHINTS": "Illegal hints flags specified.",
    "ENOTINITIALIZED": "Resolver initialization not yet performed.",
    "ELOADIPHLPAPI": "Error loading iphlpapi.dll.",
    "EADDRGETNETWORKPARAMS": "Could not find GetNetworkParams function.",
    "ECANCELLED": "DNS query cancelled.",
}

DOMAIN_NOT_FOUND_MESSAGE = DNS_ERRORS["ENOTFOUND"]

# Expected per-type outcomes; anything else aborts the batch
RECOVERABLE_CODES = frozenset({"ENODATA", "ENOTFOUND", "EBADRESP"})


def lookup_error_message(code: str) -> str | None:
    """Look up the message for a resolver code, with or without the E prefix.

    Examples:
        >>> lookup_error_message("ETIMEOUT")
        'Timeout while contacting DNS servers.'
        >>> lookup_error_message("NOTFOUND")
        'Domain name not found.'
        >>> lookup_error_message("EWHATEVER") is None
        True
    """
    return DNS_ERRORS.get(code) or DNS_ERRORS.get(f"E{code}")


def _error_code(error: Exception) -> str | None:
    code = getattr(error, "code", None)
    if isinstance(code, str):
        return code
    if isinstance(error, OSError) and error.errno:
        return errno.errorcode.get(error.errno)
    return None


def classify_error(error: Exception) -> DNSQueryError:
    """Classify a raw error into a DNSQueryError with a readable message.

    Known codes overwrite both message and detail with the table text;
    unknown codes keep the raw error's own message and detail.

    Args:
        error: DNSQueryError from the resolver adapter, or any other
            exception carrying a ``code`` attribute or an errno.

    Returns:
        DNSQueryError: New classified error; the input is not modified.
    """
    if isinstance(error, DNSQueryError):
        message = error.message
        detail = error.detail
        code = error.code
        syscall = error.syscall
        hostname = error.hostname
    else:
        message = str(error) or type(error).__name__
        detail = message
        code = _error_code(error)
        syscall = getattr(error, "syscall", None)
        hostname = getattr(error, "hostname", None)

    if code:
        known_message = lookup_error_message(code)
        if known_message:
            message = known_message
            detail = known_message

    return DNSQueryError(
        message, code=code, syscall=syscall, hostname=hostname, detail=detail
    )


def is_fatal_error(error: DNSQueryError | None) -> bool:
    """Decide whether a classified error aborts the batch.

    Returns:
        bool: False for no error, errors without a code, and the
        recoverable codes (ENODATA, ENOTFOUND, EBADRESP); True otherwise.
    """
    if error is None or not error.code:
        return False
    return error.code not in RECOVERABLE_CODES
