"""Retry and failover strategy for backend calls.

Retries transient failures (no response, rate limits, server errors) with
exponential backoff, then falls through to the fallback backends in order.
Only BackendError is intercepted; every other exception propagates untouched.
"""

import time
from collections.abc import Sequence

import tenacity

from llm_helm.exceptions import BackendError, BackendExhaustedError, ConfigurationError
from llm_helm.messages import ChatRequest, Response
from llm_helm.observability import get_logger, record_backend_call, record_backend_retry
from llm_helm.protocol import Backend

logger = get_logger(__name__)

DEFAULT_BASE_DELAY_SECONDS = 0.2
DEFAULT_MAX_DELAY_SECONDS = 5.0


def _backend_name(backend: Backend) -> str:
    return type(backend).__name__


def call_backend(backend: Backend, request: ChatRequest) -> Response:
    """Make one backend call, counting it as a success or an error."""
    name = _backend_name(backend)
    try:
        response = backend.chat(request)
    except BackendError:
        record_backend_call(name, error=True)
        raise
    record_backend_call(name)
    return response


class RetryHandler:
    """Wraps a primary backend and ordered fallbacks with retry and failover.

    Each backend gets up to ``max_retries + 1`` attempts. Permanent failures
    move straight on to the next backend without consuming retry budget.
    """

    def __init__(
        self,
        primary: Backend,
        fallback_backends: Sequence[Backend] = (),
        max_retries: int = 0,
        base_delay: float = DEFAULT_BASE_DELAY_SECONDS,
        max_delay: float = DEFAULT_MAX_DELAY_SECONDS,
    ):
        """Initialize the handler.

        Args:
            primary: Backend tried first
            fallback_backends: Backends tried in order once the primary is exhausted
            max_retries: Retries per backend after the first attempt (0 = no retries)
            base_delay: Backoff delay for the first retry, in seconds
            max_delay: Upper bound for any single backoff delay, in seconds

        Raises:
            ConfigurationError: If max_retries is negative or a fallback is not a Backend
        """
        if max_retries < 0:
            raise ConfigurationError("Retry count must be zero or greater.")
        for fallback in fallback_backends:
            if not isinstance(fallback, Backend):
                raise ConfigurationError(
                    f"Fallback backend {fallback!r} must implement the Backend protocol."
                )

        self._primary = primary
        self._fallback_backends = list(fallback_backends)
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._max_delay = max_delay

    @property
    def backends(self) -> list[Backend]:
        """All backends in the order they are tried."""
        return [self._primary, *self._fallback_backends]

    def execute(self, request: ChatRequest) -> Response:
        """Send a request with retry and failover protection.

        Args:
            request: The immutable chat request

        Returns:
            The first successful response

        Raises:
            BackendExhaustedError: When every backend has failed
        """
        attempted: list[str] = []
        last_error: BackendError | None = None

        for backend in self.backends:
            name = _backend_name(backend)
            attempted.append(name)
            try:
                return self._try_backend(backend, request)
            except BackendError as e:
                last_error = e
                logger.warning(
                    "backend_failover",
                    backend=name,
                    status_code=e.status_code,
                    error=str(e),
                )

        raise BackendExhaustedError(
            attempted,
            status_code=last_error.status_code if last_error else None,
        ) from last_error

    def _try_backend(self, backend: Backend, request: ChatRequest) -> Response:
        """Call one backend, retrying transient failures.

        Raises:
            BackendError: When a permanent failure occurs or retries run out
        """
        name = _backend_name(backend)

        def before_sleep(retry_state: tenacity.RetryCallState) -> None:
            record_backend_retry(name)
            error = retry_state.outcome.exception() if retry_state.outcome else None
            logger.warning(
                "backend_retry",
                backend=name,
                attempt=retry_state.attempt_number,
                max_retries=self._max_retries,
                delay=retry_state.next_action.sleep if retry_state.next_action else None,
                error=str(error),
            )

        retrying = tenacity.Retrying(
            stop=tenacity.stop_after_attempt(self._max_retries + 1),
            wait=self._wait,
            retry=tenacity.retry_if_exception(self._should_retry),
            before_sleep=before_sleep,
            sleep=self.sleep,
            reraise=True,
        )
        return retrying(call_backend, backend, request)

    def _wait(self, retry_state: tenacity.RetryCallState) -> float:
        return self.calculate_delay(retry_state.attempt_number - 1)

    @classmethod
    def _should_retry(cls, error: BaseException) -> bool:
        return isinstance(error, BackendError) and cls.is_retryable(error)

    @staticmethod
    def is_retryable(error: BackendError) -> bool:
        """Whether a backend failure is transient.

        Retryable: no status / 0 (no response), 429 (rate limit), 500-599.
        Everything else (400, 401, 403, 404, 422, ...) is permanent.
        """
        code = error.status_code or 0
        if code in (0, 429):
            return True
        return 500 <= code <= 599

    def calculate_delay(self, attempt: int) -> float:
        """Exponential backoff delay for a 0-indexed retry attempt, capped at max_delay."""
        return min(self._base_delay * (2**attempt), self._max_delay)

    def sleep(self, seconds: float) -> None:
        """Block for the backoff delay. Override in tests to skip real waiting."""
        time.sleep(seconds)
