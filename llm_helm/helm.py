"""Bootstrap root that wires a backend and settings into chat builders.

Helm holds no global state and makes no remote calls when constructed.
Callers resolve settings (environment, files, their own config layer) before
handing them in.
"""

from collections.abc import Sequence
from typing import Self

from llm_helm.chat import ChatBuilder
from llm_helm.exceptions import ConfigurationError
from llm_helm.protocol import Backend
from llm_helm.settings import HelmSettings


class Helm:
    """Entry point: produces ChatBuilders seeded with resolved defaults."""

    def __init__(
        self,
        backend: Backend,
        settings: HelmSettings | None = None,
        fallback_backends: Sequence[Backend] = (),
    ):
        """Initialize Helm.

        Args:
            backend: Primary backend for every chat
            settings: Resolved defaults; HelmSettings() from the environment if None
            fallback_backends: Default failover backends, tried in order

        Raises:
            ConfigurationError: If a backend does not implement the Backend protocol
        """
        for candidate in (backend, *fallback_backends):
            if not isinstance(candidate, Backend):
                raise ConfigurationError(
                    f"Backend {candidate!r} must implement the Backend protocol."
                )
        self._backend = backend
        self._settings = settings if settings is not None else HelmSettings()
        self._fallback_backends = list(fallback_backends)

    @classmethod
    def make(
        cls,
        backend: Backend,
        settings: HelmSettings | None = None,
        fallback_backends: Sequence[Backend] = (),
    ) -> Self:
        return cls(backend, settings=settings, fallback_backends=fallback_backends)

    @property
    def backend(self) -> Backend:
        """The primary backend."""
        return self._backend

    @property
    def settings(self) -> HelmSettings:
        return self._settings

    def chat(self) -> ChatBuilder:
        """Start a new conversation with the configured defaults."""
        settings = self._settings
        return ChatBuilder(
            self._backend,
            model=settings.model,
            temperature=settings.temperature,
            retries=settings.retries,
            repair=settings.repair,
            max_steps=settings.max_steps,
            fallback_backends=self._fallback_backends,
            retry_base_delay=settings.retry_base_delay,
            retry_max_delay=settings.retry_max_delay,
        )
