from __future__ import annotations

import os
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field

from .constants import (
    DEFAULT_FANOUT_DELAY,
    DEFAULT_GATEWAY_TIMEOUT,
    DEFAULT_LANGUAGE,
    DEFAULT_MODEL_NAME,
    DEFAULT_SUPPORTED_LOCALES,
    DEFAULT_SYSTEM_PROMPT,
    INPUT_COST_PER_MILLION,
    OUTPUT_COST_PER_MILLION,
)


class GatewayConfig(BaseModel):
    """Configuration for the completion gateway."""

    model: str = DEFAULT_MODEL_NAME
    timeout: float = DEFAULT_GATEWAY_TIMEOUT
    system_prompt: str = DEFAULT_SYSTEM_PROMPT


class PricingConfig(BaseModel):
    """Per-million token prices used for cost bookkeeping."""

    input_cost_per_million: float = INPUT_COST_PER_MILLION
    output_cost_per_million: float = OUTPUT_COST_PER_MILLION


class LocaleConfig(BaseModel):
    """Languages a workflow can be generated in."""

    default_language: str = DEFAULT_LANGUAGE
    supported_locales: List[str] = Field(
        default_factory=lambda: list(DEFAULT_SUPPORTED_LOCALES)
    )
    fanout_delay: float = DEFAULT_FANOUT_DELAY


class ContentflowConfig(BaseModel):
    """Top-level configuration model."""

    gateway: GatewayConfig = GatewayConfig()
    pricing: PricingConfig = PricingConfig()
    locales: LocaleConfig = LocaleConfig()
    database_url: Optional[str] = None
    context_token_budget: Optional[int] = None


CONFIG_PATH_ENV = "CONTENTFLOW_CONFIG"
DATABASE_URL_ENVS = ("CONTENTFLOW_DATABASE_URL", "DATABASE_URL")


def database_url_from_env() -> Optional[str]:
    """First database URL set in the environment, contentflow's own variable winning."""
    for name in DATABASE_URL_ENVS:
        value = os.getenv(name)
        if value:
            return value
    return None


def load_config(path: Optional[str] = None) -> ContentflowConfig:
    """Build the contentflow configuration.

    Settings are read from ``path``, the file named by ``CONTENTFLOW_CONFIG``
    or ``./config.yaml``, whichever comes first; without a file every section
    keeps its defaults. A database URL set in the environment replaces the
    one from the file.
    """
    config_path = path or os.getenv(CONFIG_PATH_ENV, "config.yaml")
    data = {}
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    config = ContentflowConfig.model_validate(data)

    config.database_url = database_url_from_env() or config.database_url
    return config
