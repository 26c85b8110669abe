"""DNS query error model."""


class DNSQueryError(Exception):
    """Error raised by a DNS query.

    Attributes:
        message: Human-readable message.
        code: Resolver error code (e.g. "ENOTFOUND"), or None if unknown.
        syscall: Operation that produced the error (e.g. "queryA",
            "getHostByAddr").
        hostname: Name or address that was being resolved.
        detail: Longer description; defaults to the message.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        syscall: str | None = None,
        hostname: str | None = None,
        detail: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.syscall = syscall
        self.hostname = hostname
        self.detail = detail if detail is not None else message

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"DNSQueryError(code={self.code!r}, syscall={self.syscall!r}, "
            f"message={self.message!r})"
        )

    def to_json(self) -> dict:
        """Serialize to JSON-compatible dict.

        Returns:
            dict: JSON-serializable representation.
        """
        return {
            "message": self.message,
            "detail": self.detail,
            "code": self.code,
            "syscall": self.syscall,
            "hostname": self.hostname,
        }
