"""Scripted backend for tests and local development.

Makes no remote calls. Replays a script of responses (or exceptions to raise)
and records every request it receives.
"""

from collections.abc import Iterable

from llm_helm.messages import ChatRequest, Response


class FakeBackend:
    """Backend returning scripted responses in order.

    Each script entry is either a Response to return or an exception to
    raise. Without a script every call returns a static fake response.
    """

    def __init__(self, responses: Iterable[Response | BaseException] | None = None):
        self._script = list(responses) if responses is not None else None
        self.requests: list[ChatRequest] = []

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def chat(self, request: ChatRequest) -> Response:
        self.requests.append(request)

        if self._script is None:
            return Response(content="fake response", raw={"fake": True})

        if not self._script:
            raise RuntimeError(f"FakeBackend script exhausted after {self.call_count - 1} calls")

        result = self._script.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result
