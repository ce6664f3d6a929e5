"""
Tests for logging and metrics helpers.
"""

import pytest
import structlog
from prometheus_client import CollectorRegistry

from purchase_verifier.config import Settings
from purchase_verifier.observability.logging import log_context, redact_token, setup_logging
from purchase_verifier.observability.metrics import VerificationMetrics


@pytest.fixture
def reset_structlog():
    """Restore structlog defaults after a test reconfigures it."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_json_renderer(self, reset_structlog):
        """JSON format ends the chain with JSONRenderer."""
        setup_logging(Settings(log_format="json", _env_file=None))

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert structlog.contextvars.merge_contextvars in processors

    def test_console_renderer(self, reset_structlog):
        """Console format ends the chain with ConsoleRenderer."""
        setup_logging(Settings(log_format="console", _env_file=None))

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_app_context_added(self, reset_structlog):
        """Service identity is attached to every entry."""
        setup_logging(
            Settings(service_name="verifier-test", service_version="9.9.9", _env_file=None)
        )

        add_app_context = structlog.get_config()["processors"][3]
        event = add_app_context(None, "info", {"event": "x"})

        assert event["service"] == "verifier-test"
        assert event["version"] == "9.9.9"


class TestLogContext:
    """Tests for log_context."""

    def test_binds_and_unbinds(self, reset_structlog):
        """Values are bound only inside the block."""
        with log_context(request_id="req-123", user_id="user-456"):
            bound = structlog.contextvars.get_contextvars()
            assert bound["request_id"] == "req-123"
            assert bound["user_id"] == "user-456"

        assert "request_id" not in structlog.contextvars.get_contextvars()


class TestRedactToken:
    """Tests for redact_token."""

    def test_long_token_truncated(self):
        """Only a short prefix of long tokens is kept."""
        assert redact_token("abcdefghijklmnopqrstuvwxyz") == "abcdefgh..."

    @pytest.mark.parametrize("token", ["", "tok123", "12345678"])
    def test_short_token_masked(self, token):
        """Short tokens are fully masked."""
        assert redact_token(token) == "***"


class TestVerificationMetrics:
    """Tests for VerificationMetrics."""

    def test_record_verification(self):
        """Counter and histogram are updated together."""
        registry = CollectorRegistry()
        metrics = VerificationMetrics(registry=registry)

        metrics.record_verification("subscription", "confirmed", 0.2)
        metrics.record_verification("subscription", "confirmed", 0.3)

        assert (
            registry.get_sample_value(
                "purchase_verifications_total",
                {"product_type": "subscription", "outcome": "confirmed"},
            )
            == 2.0
        )
        assert (
            registry.get_sample_value(
                "purchase_verification_duration_seconds_count",
                {"product_type": "subscription"},
            )
            == 2.0
        )
