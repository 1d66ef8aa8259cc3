"""Backend implementation using LiteLLM.

LiteLLM speaks the OpenAI chat completions format to every vendor it
supports, so a single adapter covers OpenAI, Gemini, Mistral and any
LiteLLM proxy. The adapter maps ChatRequest to completion() arguments and
normalizes the result; vendor failures become BackendError carrying the
HTTP status code used for retry classification.
"""

import json
from typing import Any

import litellm
import openai

from llm_helm.exceptions import BackendError
from llm_helm.messages import ChatRequest, Message, Response, Role, ToolCall
from llm_helm.observability import get_logger

logger = get_logger(__name__)

DEFAULT_SCHEMA_NAME = "response"


class LiteLlmBackend:
    """Backend that sends requests through litellm.completion()."""

    def __init__(
        self,
        api_key: str | None = None,
        api_base: str | None = None,
        **completion_kwargs: Any,
    ):
        """Initialize the backend.

        Args:
            api_key: API key for the vendor or proxy (None = LiteLLM env lookup)
            api_base: Base URL override (e.g. a LiteLLM proxy)
            **completion_kwargs: Extra arguments passed to every completion() call
        """
        self._api_key = api_key
        self._api_base = api_base
        self._completion_kwargs = completion_kwargs

    def chat(self, request: ChatRequest) -> Response:
        """Send a chat completion request.

        Raises:
            BackendError: On vendor, transport or payload errors
        """
        kwargs = self.build_kwargs(request)

        try:
            completion = litellm.completion(**kwargs)
        except openai.APIConnectionError as e:
            # includes timeouts: no response was received
            raise BackendError(self._sanitise(str(e)), status_code=0) from e
        except openai.APIError as e:
            raise BackendError(
                self._sanitise(str(e)),
                status_code=getattr(e, "status_code", None),
            ) from e

        return self.parse_completion(completion)

    def build_kwargs(self, request: ChatRequest) -> dict[str, Any]:
        """Map a ChatRequest to litellm.completion() keyword arguments."""
        kwargs: dict[str, Any] = {
            **self._completion_kwargs,
            "model": request.model,
            "messages": [self._map_message(m) for m in request.messages],
        }
        if self._api_key:
            kwargs["api_key"] = self._api_key
        if self._api_base:
            kwargs["api_base"] = self._api_base
        if request.temperature is not None:
            kwargs["temperature"] = request.temperature
        if request.tools:
            kwargs["tools"] = [{"type": "function", "function": tool} for tool in request.tools]
        if request.schema is not None:
            kwargs["response_format"] = self._response_format(request.schema)
        return kwargs

    @staticmethod
    def _map_message(message: Message) -> dict[str, Any]:
        mapped: dict[str, Any] = {"role": str(message.role), "content": message.content}

        if message.role == Role.ASSISTANT and message.tool_calls:
            mapped["content"] = message.content or None
            mapped["tool_calls"] = [
                {
                    "id": tc.id,
                    "type": "function",
                    "function": {"name": tc.name, "arguments": json.dumps(tc.arguments)},
                }
                for tc in message.tool_calls
            ]
        if message.tool_call_id is not None:
            mapped["tool_call_id"] = message.tool_call_id

        return mapped

    @staticmethod
    def _response_format(schema: dict[str, Any]) -> dict[str, Any]:
        schema = dict(schema)
        name = schema.pop("name", None)
        strict = bool(schema.pop("strict", True))
        if not isinstance(name, str) or not name:
            name = DEFAULT_SCHEMA_NAME

        return {
            "type": "json_schema",
            "json_schema": {"name": name, "strict": strict, "schema": schema},
        }

    @staticmethod
    def parse_completion(completion: Any) -> Response:
        """Normalize a LiteLLM ModelResponse into a Response.

        Raises:
            BackendError: If the payload has no choices or a malformed tool call
        """
        raw = completion.model_dump() if hasattr(completion, "model_dump") else dict(completion)

        choices = raw.get("choices") or []
        if not choices:
            raise BackendError("Backend response contained no choices.")
        message = choices[0].get("message") or {}

        tool_calls = []
        for block in message.get("tool_calls") or []:
            function = block.get("function") or {}
            if not block.get("id") or not function.get("name"):
                raise BackendError("Malformed tool call in backend response.")
            try:
                arguments = json.loads(function.get("arguments") or "{}")
            except json.JSONDecodeError as e:
                raise BackendError("Malformed tool call arguments in backend response.") from e
            if not isinstance(arguments, dict):
                raise BackendError("Malformed tool call arguments in backend response.")
            tool_calls.append(ToolCall(id=block["id"], name=function["name"], arguments=arguments))

        return Response(
            content=message.get("content") or "",
            raw=raw,
            tool_calls=tuple(tool_calls) if tool_calls else None,
        )

    def _sanitise(self, message: str) -> str:
        """Strip the API key from error messages."""
        if not self._api_key:
            return message
        return message.replace(self._api_key, "[REDACTED]")
