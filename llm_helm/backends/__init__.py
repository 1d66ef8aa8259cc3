"""Backend implementations.

LiteLlmBackend is imported from llm_helm.backends.litellm directly, so
importing the core never pulls in litellm.
"""

from llm_helm.backends.fake import FakeBackend

__all__ = ["FakeBackend"]
