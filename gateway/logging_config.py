"""
Logging configuration for Cloud Run and local environments.

Automatically detects Cloud Run environment and configures appropriate logging:
- Cloud Run: google-cloud-logging with trace correlation
- Local/Test: Standard Python logging to stdout with JSON formatting

Structured context is passed with extra={"extra_fields": {...}}. Keys that
carry credentials are redacted before a record is emitted.
"""

import json
import logging
import os
from datetime import UTC, datetime


# Never emitted in plaintext
SENSITIVE_FIELDS = frozenset(
    {
        "access_token",
        "refresh_token",
        "client_secret",
        "code_verifier",
        "cookie_secret",
        "authorization",
    }
)
REDACTED = "[redacted]"


def redact(fields: dict) -> dict:
    """Return a copy of the fields with credential values replaced."""
    return {
        key: REDACTED if key.lower() in SENSITIVE_FIELDS else value
        for key, value in fields.items()
    }


class RedactingFilter(logging.Filter):
    """Redact credential-bearing keys in a record's extra_fields."""

    def filter(self, record: logging.LogRecord) -> bool:
        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            record.extra_fields = redact(extra_fields)
        return True


class JsonFormatter(logging.Formatter):
    """
    JSON log formatter.

    Keeps logs in local development structured the way Google Cloud
    Logging expects them.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_object = {
            "timestamp": datetime.now(UTC).isoformat(),
            "severity": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "extra_fields") and isinstance(record.extra_fields, dict):
            log_object.update(redact(record.extra_fields))

        if record.exc_info:
            log_object["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_object, default=str)


def setup_global_logging() -> None:
    """
    Configure global logging based on environment.

    When running in Cloud Run (K_SERVICE env var is set):
    - Uses google-cloud-logging for structured logs with trace correlation.

    When running locally or in tests:
    - Uses a stdout handler with the JSON formatter.

    LOG_LEVEL overrides the default INFO level.
    """
    level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO").upper())
    if not isinstance(level, int):
        level = logging.INFO
    is_cloud_run = os.getenv("K_SERVICE") is not None

    if is_cloud_run:
        try:
            import google.cloud.logging

            client = google.cloud.logging.Client()
            client.setup_logging(log_level=level)
            for handler in logging.getLogger().handlers:
                handler.addFilter(RedactingFilter())
            logging.info("Cloud Logging initialized for Cloud Run.")
        except Exception as e:
            # Cloud Logging could not start (missing credentials, API disabled)
            logging.basicConfig(
                level=level,
                format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            )
            logging.warning(f"Cloud Logging setup failed, using basic config: {e}")
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        handler.addFilter(RedactingFilter())

        root_logger = logging.getLogger()
        root_logger.addHandler(handler)
        root_logger.setLevel(level)

        # Remove default handlers to avoid duplicate logs
        if len(root_logger.handlers) > 1:
            for h in root_logger.handlers[:-1]:
                root_logger.removeHandler(h)
