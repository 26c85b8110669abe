"""Configuration module for DNS Query.

Loads and validates lookup settings from environment variables.
"""

import os
from dataclasses import dataclass
from typing import List

from dnsquery.models.options import LookupOptions
from dnsquery.models.query_type import DOMAIN_QUERY_TYPES, QueryType, ResultsToShow
from dnsquery.utils.ip_utils import parse_server_list


TRUE_VALUES = ("true", "1", "yes")


@dataclass
class Config:
    """Application configuration loaded from environment variables."""

    # DNS Configuration
    dns_server: str
    dns_timeout: int

    # Lookup Configuration
    private_ip_only: bool
    query_types: List[QueryType]
    results_to_show: ResultsToShow

    # Concurrency Configuration
    max_subjects_at_a_time: int
    max_tasks_at_a_time: int

    # Operational Configuration
    verbose: bool

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables.

        Raises:
            ValueError: If variables are invalid.

        Returns:
            Config: Validated configuration instance.
        """
        # DNS Configuration
        dns_server = os.getenv("DNS_SERVER", "8.8.8.8").strip()
        if dns_server:
            # Raises ValueError on malformed entries
            parse_server_list(dns_server)

        dns_timeout = int(os.getenv("DNS_TIMEOUT", "5"))
        if not 1 <= dns_timeout <= 60:
            raise ValueError("DNS_TIMEOUT must be between 1 and 60 seconds")

        # Lookup Configuration
        private_ip_only = cls._get_bool_env("PRIVATE_IP_ONLY", "false")

        query_types_str = os.getenv("QUERY_TYPES", "A")
        query_types = []
        for value in query_types_str.split(","):
            value = value.strip().upper()
            if not value:
                continue
            valid = [query_type.value for query_type in DOMAIN_QUERY_TYPES]
            if value not in valid:
                raise ValueError(
                    f"QUERY_TYPES contains invalid type {value}, must be one of: {', '.join(valid)}"
                )
            query_types.append(QueryType(value))

        results_to_show_str = os.getenv("RESULTS_TO_SHOW", "always")
        try:
            results_to_show = ResultsToShow(results_to_show_str)
        except ValueError:
            raise ValueError("RESULTS_TO_SHOW must be 'always' or 'answerOnly'")

        # Concurrency Configuration
        max_subjects_at_a_time = int(os.getenv("MAX_SUBJECTS_AT_A_TIME", "2"))
        if not 1 <= max_subjects_at_a_time <= 100:
            raise ValueError("MAX_SUBJECTS_AT_A_TIME must be between 1 and 100")

        max_tasks_at_a_time = int(os.getenv("MAX_TASKS_AT_A_TIME", "5"))
        if not 1 <= max_tasks_at_a_time <= 100:
            raise ValueError("MAX_TASKS_AT_A_TIME must be between 1 and 100")

        # Operational Configuration
        verbose = cls._get_bool_env("VERBOSE", "false")

        return cls(
            dns_server=dns_server,
            dns_timeout=dns_timeout,
            private_ip_only=private_ip_only,
            query_types=query_types,
            results_to_show=results_to_show,
            max_subjects_at_a_time=max_subjects_at_a_time,
            max_tasks_at_a_time=max_tasks_at_a_time,
            verbose=verbose,
        )

    @staticmethod
    def _get_bool_env(key: str, default: str) -> bool:
        """Parse a boolean environment variable ("true", "1", "yes" are True)."""
        return os.getenv(key, default).lower() in TRUE_VALUES

    def to_options(self) -> LookupOptions:
        """Build lookup options for a batch.

        Returns:
            LookupOptions: Options reflecting this configuration.
        """
        return LookupOptions(
            dns_server=self.dns_server,
            private_ip_only=self.private_ip_only,
            query_types=list(self.query_types),
            results_to_show=self.results_to_show,
        )
