"""Fluent builder that drives a chat request to its final answer.

ChatBuilder collects messages, model settings, tools and an optional output
schema, produces an immutable ChatRequest, and runs the rounds needed to get
a final response:

- a tool loop that executes model-requested tool calls and feeds the results
  back until the model stops asking or the step budget runs out;
- a repair loop that re-queries the model with decode or validation feedback
  until the output matches the schema or the repair budget runs out.

Backend calls go through a RetryHandler whenever retries or fallbacks are
configured.
"""

from collections.abc import Sequence
from typing import Any, Self

from llm_helm.chat.structured import StructuredOutcome, check_structured_output
from llm_helm.exceptions import (
    ConfigurationError,
    SchemaValidationError,
    ToolError,
    ToolExecutionError,
)
from llm_helm.messages import (
    ChatRequest,
    Message,
    Response,
    StructuredResponse,
    ToolCall,
    ToolResult,
)
from llm_helm.observability import (
    correlation_scope,
    get_logger,
    record_repair_attempt,
    record_tool_call,
)
from llm_helm.protocol import Backend, Tool
from llm_helm.retry import RetryHandler, call_backend
from llm_helm.retry.handler import DEFAULT_BASE_DELAY_SECONDS, DEFAULT_MAX_DELAY_SECONDS
from llm_helm.tools import ToolRegistry

logger = get_logger(__name__)

MIN_DEFAULT_MAX_STEPS = 5


def _require_non_negative(value: int, what: str) -> int:
    if value < 0:
        raise ConfigurationError(f"{what} must be zero or greater, got {value}.")
    return value


class ChatBuilder:
    """Request orchestrator for one conversation.

    The conversation buffer is owned by the builder and only grows between
    backend calls; callers read it through the ``messages`` snapshot.
    """

    def __init__(
        self,
        backend: Backend,
        *,
        model: str | None = None,
        temperature: float | None = None,
        retries: int = 0,
        repair: int = 0,
        max_steps: int | None = None,
        fallback_backends: Sequence[Backend] = (),
        retry_base_delay: float = DEFAULT_BASE_DELAY_SECONDS,
        retry_max_delay: float = DEFAULT_MAX_DELAY_SECONDS,
    ):
        """Initialize the builder.

        Keyword arguments are defaults resolved by the bootstrap layer; every
        one of them can be overridden with the matching fluent setter.

        Args:
            backend: Primary backend requests are sent to
            model: Default model identifier
            temperature: Default sampling temperature
            retries: Retries per backend for transient failures
            repair: Re-queries allowed to fix invalid structured output
            max_steps: Tool loop budget (None = max(2 * tool count, 5))
            fallback_backends: Backends tried in order after the primary
            retry_base_delay: Backoff delay for the first retry, in seconds
            retry_max_delay: Cap for any backoff delay, in seconds
        """
        self._backend = backend
        self._messages: list[Message] = []
        self._model: str | None = None
        self._temperature = temperature
        self._registry = ToolRegistry()
        self._schema: dict[str, Any] | None = None
        self._max_steps: int | None = None
        self._repair = 0
        self._retries = 0
        self._fallback_backends: list[Backend] = []
        self._retry_base_delay = retry_base_delay
        self._retry_max_delay = retry_max_delay

        if model is not None:
            self.model(model)
        if max_steps is not None:
            self.max_steps(max_steps)
        self.repair(repair)
        self.retries(retries)
        self.fallback_backends(fallback_backends)

    @property
    def messages(self) -> tuple[Message, ...]:
        """Snapshot of the conversation so far."""
        return tuple(self._messages)

    def system(self, text: str) -> Self:
        """Append a system message."""
        self._messages.append(Message.system(text))
        return self

    def user(self, text: str) -> Self:
        """Append a user message."""
        self._messages.append(Message.user(text))
        return self

    def model(self, name: str) -> Self:
        if not name:
            raise ConfigurationError("Model identifier must be a non-empty string.")
        self._model = name
        return self

    def temperature(self, value: float) -> Self:
        self._temperature = value
        return self

    def tools(self, tools: Sequence[Tool]) -> Self:
        """Set the tools available to the model, replacing any previous set.

        Raises:
            DuplicateToolError: If two tools share a name
        """
        self._registry = ToolRegistry(tools)
        return self

    def max_steps(self, steps: int) -> Self:
        """Set the maximum number of tool loop iterations."""
        self._max_steps = _require_non_negative(steps, "Max steps")
        return self

    def json_schema(self, schema: dict[str, Any]) -> Self:
        """Require structured output matching the schema."""
        self._schema = schema
        return self

    def repair(self, attempts: int) -> Self:
        """Set how many times invalid structured output is sent back for correction."""
        self._repair = _require_non_negative(attempts, "Repair attempts")
        return self

    def retries(self, count: int) -> Self:
        """Set how many times a transient backend failure is retried per backend."""
        self._retries = _require_non_negative(count, "Retry count")
        return self

    def fallback_backends(self, backends: Sequence[Backend]) -> Self:
        """Set backends to fail over to, in order, once the primary is exhausted."""
        for backend in backends:
            if not isinstance(backend, Backend):
                raise ConfigurationError(
                    f"Fallback backend {backend!r} must implement the Backend protocol."
                )
        self._fallback_backends = list(backends)
        return self

    def to_request(self) -> ChatRequest:
        """Build the immutable ChatRequest from the current state.

        Raises:
            ConfigurationError: If no model has been set
        """
        if self._model is None:
            raise ConfigurationError(
                "No model specified. Call .model() or provide a default model in settings."
            )

        return ChatRequest(
            messages=tuple(self._messages),
            model=self._model,
            temperature=self._temperature,
            tools=tuple(self._registry.definitions()),
            schema=self._schema,
        )

    def send(self) -> Response:
        """Send the request and run the tool and repair loops.

        Returns:
            The final Response, or a StructuredResponse when a schema is set.
            If the tool loop runs out of steps, the last response is returned
            as-is and may still carry pending tool calls.

        Raises:
            ConfigurationError: If no model has been set
            BackendError: If the backend fails (BackendExhaustedError when
                retries or fallbacks are configured and all of them fail)
            ToolNotFoundError: If the model requests an unregistered tool
            ToolExecutionError: If a tool fails or returns an unusable result
            SchemaValidationError: If structured output stays invalid after all repairs
        """
        with correlation_scope():
            return self._run()

    def _run(self) -> Response:
        response = self._dispatch(self.to_request())
        response = self._run_tool_loop(response)

        if self._schema is not None:
            return self._resolve_structured(response)
        return response

    def _run_tool_loop(self, response: Response) -> Response:
        max_steps = self._effective_max_steps()
        steps = 0

        while response.has_tool_calls and self._registry and steps < max_steps:
            steps += 1
            logger.debug(
                "tool_loop_step",
                step=steps,
                max_steps=max_steps,
                tool_calls=[tc.name for tc in response.tool_calls],
            )
            tool_messages = self._execute_tools(response.tool_calls)
            self._messages.append(Message.assistant(response.content, response.tool_calls))
            self._messages.extend(tool_messages)

            response = self._dispatch(self.to_request())

        if response.has_tool_calls and self._registry:
            logger.warning("tool_loop_budget_exhausted", max_steps=max_steps)

        return response

    def _effective_max_steps(self) -> int:
        if self._max_steps is not None:
            return self._max_steps
        return max(len(self._registry) * 2, MIN_DEFAULT_MAX_STEPS)

    def _execute_tools(self, tool_calls: Sequence[ToolCall]) -> list[Message]:
        """Run every tool call in order and build the matching tool messages.

        All results are encoded before the caller appends anything, so a
        failing step leaves the conversation untouched.
        """
        tool_messages = []
        for tool_call in tool_calls:
            try:
                message = Message.tool(self._execute_tool(tool_call))
            except ToolError:
                record_tool_call(tool_call.name, error=True)
                raise
            record_tool_call(tool_call.name)
            tool_messages.append(message)
        return tool_messages

    def _execute_tool(self, tool_call: ToolCall) -> ToolResult:
        tool = self._registry.get(tool_call.name)

        try:
            result = tool.handle(tool_call.arguments)
        except Exception as e:
            raise ToolExecutionError(
                f"Tool execution failed: {tool_call.name}: {e}",
                tool_name=tool_call.name,
            ) from e

        if not isinstance(result, dict):
            raise ToolExecutionError(
                f"Tool {tool_call.name} must return a mapping result, "
                f"got {type(result).__name__}.",
                tool_name=tool_call.name,
            )

        return ToolResult(tool_call_id=tool_call.id, name=tool_call.name, result=result)

    def _resolve_structured(self, response: Response) -> StructuredResponse:
        remaining = self._repair

        while True:
            outcome = check_structured_output(response.content, self._schema)
            if outcome.ok:
                return StructuredResponse(
                    content=response.content,
                    raw=response.raw,
                    tool_calls=response.tool_calls,
                    structured=outcome.value,
                )

            if remaining <= 0:
                raise self._schema_failure(outcome, response)

            record_repair_attempt(str(outcome.kind))
            logger.info(
                "structured_output_repair",
                reason=str(outcome.kind),
                remaining=remaining,
                errors=outcome.errors,
            )
            self._messages.append(Message.assistant(response.content))
            self._messages.append(Message.user(outcome.repair_prompt()))
            remaining -= 1

            response = self._dispatch(self.to_request())

    def _schema_failure(
        self, outcome: StructuredOutcome, response: Response
    ) -> SchemaValidationError:
        logger.warning(
            "structured_output_invalid",
            reason=str(outcome.kind),
            errors=outcome.errors,
        )
        return SchemaValidationError(
            outcome.failure_message(),
            validation_errors=outcome.errors,
            raw_output=response.content,
            request_context=self.to_request().to_dict(),
        )

    def _dispatch(self, request: ChatRequest) -> Response:
        if self._retries == 0 and not self._fallback_backends:
            return call_backend(self._backend, request)
        return self._build_retry_handler().execute(request)

    def _build_retry_handler(self) -> RetryHandler:
        return RetryHandler(
            self._backend,
            fallback_backends=self._fallback_backends,
            max_retries=self._retries,
            base_delay=self._retry_base_delay,
            max_delay=self._retry_max_delay,
        )
