"""Completion gateway backed by a pydantic-ai agent."""

from __future__ import annotations

import logging
from typing import Union

from pydantic_ai import Agent
from pydantic_ai.models import Model
from pydantic_ai.settings import ModelSettings

from ..constants import DEFAULT_MODEL_NAME, DEFAULT_SYSTEM_PROMPT
from ..contracts import Completion
from ..errors import GatewayError
from .base import CompletionGateway

logger = logging.getLogger(__name__)


class AgentCompletionGateway(CompletionGateway):
    """Send prompts through a plain-text ``pydantic_ai.Agent``.

    Args:
        model: Model name understood by pydantic-ai (``"openai:gpt-4o-mini"``)
            or a ``Model`` instance such as ``TestModel`` in tests.
        system_prompt: Persona prepended to every request.
    """

    def __init__(
        self,
        model: Union[str, Model] = DEFAULT_MODEL_NAME,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
    ) -> None:
        self.agent: Agent = Agent(
            model, system_prompt=system_prompt, defer_model_check=True
        )
        self.model_name = model if isinstance(model, str) else model.model_name

    async def complete(
        self, prompt: str, max_tokens: int, temperature: float
    ) -> Completion:
        try:
            result = await self.agent.run(
                prompt,
                model_settings=ModelSettings(
                    max_tokens=max_tokens, temperature=temperature
                ),
            )
        except Exception as e:
            logger.debug(f"Completion via {self.model_name} failed: {e!r}")
            raise GatewayError(f"{type(e).__name__}: {e}") from e

        usage = result.usage()
        return Completion(
            text=result.output or "",
            input_tokens=usage.input_tokens or None,
            output_tokens=usage.output_tokens or None,
            model=self.model_name,
        )
