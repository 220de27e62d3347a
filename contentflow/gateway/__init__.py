"""Completion gateway factory and initialization."""

from __future__ import annotations

import os
from typing import Optional

from ..config import ContentflowConfig, load_config
from .base import CompletionGateway


def get_gateway(
    model: Optional[str] = None, config: Optional[ContentflowConfig] = None
) -> CompletionGateway:
    """Factory function to get the configured completion gateway."""

    from .agent import AgentCompletionGateway

    config = config or load_config()
    model = model or os.getenv("CONTENTFLOW_MODEL") or config.gateway.model
    return AgentCompletionGateway(model, system_prompt=config.gateway.system_prompt)


__all__ = ["CompletionGateway", "get_gateway"]
