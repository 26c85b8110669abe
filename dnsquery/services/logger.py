"""Structured JSON logging."""

import logging
import sys
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, TextIO

from pythonjsonlogger import jsonlogger


# Run ID for correlation across log entries of one process
RUN_ID = str(uuid.uuid4())


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter that adds run_id and standardized fields."""

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        """Add custom fields to log record.

        Args:
            log_record: The log record to modify.
            record: The original logging.LogRecord.
            message_dict: Additional fields from the logging call.
        """
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["run_id"] = RUN_ID
        log_record["level"] = record.levelname
        log_record["logger"] = record.name


def setup_logging(verbose: bool = False, stream: TextIO | None = None) -> logging.Logger:
    """Configure structured JSON logging for the application.

    Args:
        verbose: Log at DEBUG instead of INFO.
        stream: Output stream; defaults to stderr so stdout stays free for
            lookup output.

    Returns:
        logging.Logger: Configured root logger.
    """
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    # Remove existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    json_handler = logging.StreamHandler(stream or sys.stderr)
    formatter = CustomJsonFormatter(
        "%(message)s",
        timestamp=True,
    )
    json_handler.setFormatter(formatter)
    logger.addHandler(json_handler)

    return logger


def log_subject_lookup(
    subject: str,
    kind: str,
    searched_types: List[str],
    total_answers: int,
    summary: List[str],
    miss: bool,
    duration_ms: int,
) -> None:
    """Log structured per-subject lookup result.

    Args:
        subject: Domain or IP that was looked up.
        kind: "domain" or "ip".
        searched_types: Query types that were run.
        total_answers: Results across all query types.
        summary: Summary tags produced for the subject.
        miss: Whether the visibility filter suppressed the result.
        duration_ms: Lookup time in milliseconds.
    """
    logger = logging.getLogger(__name__)
    logger.info(
        "Subject lookup completed",
        extra={
            "subject": subject,
            "kind": kind,
            "searched_types": searched_types,
            "total_answers": total_answers,
            "summary": summary,
            "miss": miss,
            "duration_ms": duration_ms,
        },
    )


def log_query_error(
    subject: str,
    query_type: str,
    code: str | None,
    syscall: str | None,
    message: str,
    fatal: bool,
) -> None:
    """Log a failed DNS query; fatal errors at ERROR, recoverable at WARNING."""
    logger = logging.getLogger(__name__)
    logger.log(
        logging.ERROR if fatal else logging.WARNING,
        "DNS query failed",
        extra={
            "subject": subject,
            "query_type": query_type,
            "code": code,
            "syscall": syscall,
            "error_message": message,
            "fatal": fatal,
        },
    )


def log_batch_summary(
    total_subjects: int,
    looked_up: int,
    skipped: int,
    misses: int,
    total_answers: int,
    duration_sec: float,
) -> None:
    """Log batch completion summary.

    Args:
        total_subjects: Subjects supplied with the batch.
        looked_up: Subjects that produced an outcome.
        skipped: Subjects skipped by the private IP filter.
        misses: Outcomes suppressed by the visibility filter.
        total_answers: Results across all subjects.
        duration_sec: Batch execution time in seconds.
    """
    logger = logging.getLogger(__name__)
    logger.info(
        "Lookup batch completed",
        extra={
            "total_subjects": total_subjects,
            "looked_up": looked_up,
            "skipped": skipped,
            "misses": misses,
            "total_answers": total_answers,
            "duration_sec": duration_sec,
        },
    )
