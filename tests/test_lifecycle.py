"""
Tests for application lifecycle events and logging setup.
"""

import json
import logging
import os
from unittest.mock import patch

from fastapi.testclient import TestClient

from gateway.logging_config import JsonFormatter, RedactingFilter
from tests.conftest import app


class TestApplicationLifecycle:
    """Test application lifecycle events."""

    def test_startup_logs_configured_providers(self, caplog):
        env = {"GITHUB_CLIENT_ID": "gh", "CUSTOM_OAUTH_URL": "http://localhost:9000"}

        with patch.dict(os.environ, env, clear=True), caplog.at_level(logging.INFO):
            with TestClient(app) as test_client:
                assert test_client.get("/health").status_code == 200

        assert "github, custom" in caplog.text
        assert "Shutting down application" in caplog.text

    def test_startup_warns_without_providers(self, caplog):
        with patch.dict(os.environ, {}, clear=True), caplog.at_level(logging.INFO):
            with TestClient(app):
                pass

        assert "no OAuth providers configured" in caplog.text


class TestJsonLogging:
    """Test the JSON formatter and credential redaction."""

    def _record(self, **extra_fields) -> logging.LogRecord:
        record = logging.LogRecord(
            "gateway.test", logging.INFO, __file__, 1, "hello %s", ("world",), None
        )
        record.extra_fields = extra_fields
        return record

    def test_formats_json_with_extra_fields(self):
        output = json.loads(JsonFormatter().format(self._record(provider="github")))

        assert output["message"] == "hello world"
        assert output["severity"] == "INFO"
        assert output["name"] == "gateway.test"
        assert output["provider"] == "github"

    def test_redacts_credentials(self):
        record = self._record(access_token="gho_secret", client_secret="s", login="octocat")

        RedactingFilter().filter(record)
        output = JsonFormatter().format(record)

        assert "gho_secret" not in output
        assert json.loads(output)["login"] == "octocat"
        assert record.extra_fields["client_secret"] == "[redacted]"
