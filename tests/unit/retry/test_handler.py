"""Unit tests for the retry and failover strategy."""

from unittest.mock import Mock

import pytest

from llm_helm.backends import FakeBackend
from llm_helm.exceptions import (
    BackendError,
    BackendExhaustedError,
    ConfigurationError,
    SchemaValidationError,
)
from llm_helm.messages import Response
from llm_helm.retry import RetryHandler


class RecordingRetryHandler(RetryHandler):
    """RetryHandler that records backoff delays instead of sleeping."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.sleep_calls: list[float] = []

    def sleep(self, seconds: float) -> None:
        self.sleep_calls.append(seconds)


class SecondaryBackend(FakeBackend):
    """Distinct class name so exhaustion messages can be told apart."""


def ok(content: str = "OK") -> Response:
    return Response(content=content, raw={})


class TestRetryHandlerInit:
    """Tests for RetryHandler construction."""

    def test_rejects_negative_retries(self):
        """Negative retry counts are a configuration error."""
        with pytest.raises(ConfigurationError, match="zero or greater"):
            RetryHandler(FakeBackend(), max_retries=-1)

    def test_rejects_non_backend_fallbacks(self):
        """Fallbacks must implement the Backend protocol."""
        with pytest.raises(ConfigurationError, match="Backend protocol"):
            RetryHandler(FakeBackend(), fallback_backends=["not-a-backend"])

    def test_backends_lists_primary_first(self):
        """Primary is tried before fallbacks, in order."""
        primary, first, second = FakeBackend(), FakeBackend(), FakeBackend()
        handler = RetryHandler(primary, fallback_backends=[first, second])
        assert handler.backends == [primary, first, second]


class TestRetryHandlerRetries:
    """Tests for per-backend retry behaviour."""

    def test_succeeds_on_first_attempt(self, sample_request):
        """A healthy backend is called once, without sleeping."""
        backend = FakeBackend([ok("First try")])
        handler = RecordingRetryHandler(backend, max_retries=2)

        response = handler.execute(sample_request)

        assert response.content == "First try"
        assert backend.call_count == 1
        assert handler.sleep_calls == []

    @pytest.mark.parametrize("status_code", [0, None, 429, 500, 502, 503, 599])
    def test_retries_transient_failures(self, sample_request, status_code):
        """Transient failures are retried on the same backend."""
        backend = FakeBackend([BackendError("transient", status_code=status_code), ok("Retry OK")])
        handler = RecordingRetryHandler(backend, max_retries=1)

        response = handler.execute(sample_request)

        assert response.content == "Retry OK"
        assert backend.call_count == 2
        assert len(handler.sleep_calls) == 1

    @pytest.mark.parametrize("retries", [0, 1, 2, 5])
    def test_always_failing_backend_called_retries_plus_one_times(self, sample_request, retries):
        """A backend failing with 500 is attempted exactly retries + 1 times."""
        backend = Mock()
        backend.chat.side_effect = BackendError("Server error", status_code=500)
        handler = RecordingRetryHandler(backend, max_retries=retries)

        with pytest.raises(BackendExhaustedError):
            handler.execute(sample_request)

        assert backend.chat.call_count == retries + 1
        assert len(handler.sleep_calls) == retries

    @pytest.mark.parametrize("status_code", [400, 401, 403, 404, 422])
    def test_does_not_retry_permanent_failures(self, sample_request, status_code):
        """Permanent failures are not retried."""
        backend = FakeBackend([BackendError("client error", status_code=status_code)])
        handler = RecordingRetryHandler(backend, max_retries=3)

        with pytest.raises(BackendExhaustedError) as exc_info:
            handler.execute(sample_request)

        assert exc_info.value.status_code == status_code
        assert backend.call_count == 1
        assert handler.sleep_calls == []

    def test_backoff_delays_are_exponential(self, sample_request):
        """Delays double per attempt."""
        backend = FakeBackend([BackendError("down", status_code=503)] * 3 + [ok()])
        handler = RecordingRetryHandler(backend, max_retries=3, base_delay=0.1, max_delay=10)

        handler.execute(sample_request)

        assert handler.sleep_calls == pytest.approx([0.1, 0.2, 0.4])


class TestRetryHandlerFailover:
    """Tests for failover across backends."""

    def test_falls_back_when_primary_fails(self, sample_request):
        """The first fallback answers once the primary is exhausted."""
        primary = FakeBackend([BackendError("Primary down", status_code=500)])
        backup = FakeBackend([ok("Backup OK")])
        handler = RecordingRetryHandler(primary, fallback_backends=[backup])

        assert handler.execute(sample_request).content == "Backup OK"

    def test_permanent_failure_advances_without_consuming_retries(self, sample_request):
        """A 401 on the primary moves straight to the fallback."""
        primary = FakeBackend([BackendError("Unauthorized", status_code=401)])
        backup = FakeBackend([ok("Backup OK")])
        handler = RecordingRetryHandler(primary, fallback_backends=[backup], max_retries=3)

        response = handler.execute(sample_request)

        assert response.content == "Backup OK"
        assert primary.call_count == 1
        assert handler.sleep_calls == []

    def test_combined_retries_and_fallback(self, sample_request):
        """Each backend gets its own retry budget."""
        primary = FakeBackend([BackendError("Fail 1", 500), BackendError("Fail 2", 500)])
        backup = FakeBackend([BackendError("Backup fail", 502), ok("Eventually OK")])
        handler = RecordingRetryHandler(primary, fallback_backends=[backup], max_retries=1)

        response = handler.execute(sample_request)

        assert response.content == "Eventually OK"
        assert primary.call_count == 2
        assert backup.call_count == 2

    def test_exhaustion_names_every_backend_and_chains_last_error(self, sample_request):
        """The exhaustion error lists attempted backends and chains the final failure."""
        last = BackendError("Secondary down", status_code=503)
        primary = FakeBackend([BackendError("Primary down", status_code=500)])
        secondary = SecondaryBackend([last])
        handler = RecordingRetryHandler(primary, fallback_backends=[secondary])

        with pytest.raises(BackendExhaustedError) as exc_info:
            handler.execute(sample_request)

        error = exc_info.value
        assert error.attempted == ["FakeBackend", "SecondaryBackend"]
        assert "FakeBackend" in str(error)
        assert "SecondaryBackend" in str(error)
        assert error.__cause__ is last
        assert error.status_code == 503

    def test_exhaustion_error_is_a_backend_error(self, sample_request):
        """Callers catching BackendError also catch exhaustion."""
        handler = RecordingRetryHandler(FakeBackend([BackendError("down", 500)]))
        with pytest.raises(BackendError):
            handler.execute(sample_request)


class TestRetryHandlerPassThrough:
    """Tests that non-backend errors are never intercepted."""

    def test_other_errors_propagate_unchanged(self, sample_request):
        """A non-backend error is neither retried nor failed over."""
        error = SchemaValidationError("bad output")
        primary = FakeBackend([error])
        backup = FakeBackend([ok()])
        handler = RecordingRetryHandler(primary, fallback_backends=[backup], max_retries=3)

        with pytest.raises(SchemaValidationError) as exc_info:
            handler.execute(sample_request)

        assert exc_info.value is error
        assert primary.call_count == 1
        assert backup.call_count == 0

    def test_unexpected_exceptions_propagate(self, sample_request):
        """Programming errors in a backend surface as-is."""
        handler = RecordingRetryHandler(FakeBackend([KeyError("boom")]), max_retries=2)
        with pytest.raises(KeyError):
            handler.execute(sample_request)


class TestRetryHandlerClassification:
    """Tests for is_retryable and calculate_delay."""

    @pytest.mark.parametrize("status_code", [None, 0, 429, 500, 501, 550, 599])
    def test_retryable_codes(self, status_code):
        """No response, rate limits and server errors are transient."""
        assert RetryHandler.is_retryable(BackendError("x", status_code=status_code))

    @pytest.mark.parametrize("status_code", [400, 401, 403, 404, 408, 422, 499, 600])
    def test_non_retryable_codes(self, status_code):
        """Everything else is permanent."""
        assert not RetryHandler.is_retryable(BackendError("x", status_code=status_code))

    def test_backoff_sequence_is_capped(self):
        """base 200 / cap 500 yields 200, 400, 500."""
        handler = RetryHandler(FakeBackend(), base_delay=200, max_delay=500)
        assert [handler.calculate_delay(n) for n in range(3)] == [200, 400, 500]

    def test_backoff_stays_at_cap(self):
        """Later attempts never exceed the cap."""
        handler = RetryHandler(FakeBackend(), base_delay=1, max_delay=5)
        assert handler.calculate_delay(10) == 5
