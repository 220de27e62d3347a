"""Base completion gateway interface."""

from __future__ import annotations

import abc

from ..contracts import Completion


class CompletionGateway(metaclass=abc.ABCMeta):
    """Abstract text-completion capability."""

    model_name: str = "unknown"

    @abc.abstractmethod
    async def complete(
        self, prompt: str, max_tokens: int, temperature: float
    ) -> Completion:
        """Generate text for ``prompt``.

        Raises:
            GatewayError: The provider failed (rate limit, auth, bad response...).
        """
        raise NotImplementedError
