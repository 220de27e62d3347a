"""Shared fixtures: an in-memory repository and a scripted completion gateway."""

import asyncio
from typing import List, Optional, Tuple, Union

import pytest

from contentflow.config import ContentflowConfig, GatewayConfig, LocaleConfig
from contentflow.contracts import Completion
from contentflow.gateway import CompletionGateway
from contentflow.orchestrator import WorkflowOrchestrator
from contentflow.persistence import InMemoryWorkflowRepository

Response = Union[Completion, str, BaseException]


class ScriptedGateway(CompletionGateway):
    """Gateway answering from a queue of canned responses.

    Exceptions in the queue are raised, strings become completions without
    usage. Once the queue is empty every call gets a numbered default answer
    with 10 input and 5 output tokens.
    """

    model_name = "test-model"

    def __init__(self, responses: Optional[List[Response]] = None, delay: float = 0.0):
        self.responses: List[Response] = list(responses or [])
        self.delay = delay
        self.calls: List[Tuple[str, int, float]] = []

    @property
    def prompts(self) -> List[str]:
        return [prompt for prompt, _, _ in self.calls]

    async def complete(self, prompt: str, max_tokens: int, temperature: float) -> Completion:
        self.calls.append((prompt, max_tokens, temperature))
        if self.delay:
            await asyncio.sleep(self.delay)
        if not self.responses:
            n = len(self.calls)
            return Completion(
                text=f"Output {n}: market worth USD {n} billion growing at 12% CAGR.",
                input_tokens=10,
                output_tokens=5,
            )
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        if isinstance(response, str):
            return Completion(text=response)
        return response


@pytest.fixture
def repo() -> InMemoryWorkflowRepository:
    return InMemoryWorkflowRepository()


@pytest.fixture
def gateway() -> ScriptedGateway:
    return ScriptedGateway()


@pytest.fixture
def config() -> ContentflowConfig:
    return ContentflowConfig(
        gateway=GatewayConfig(model="test", timeout=1.0),
        locales=LocaleConfig(fanout_delay=0),
    )


@pytest.fixture
def orchestrator(repo, gateway, config) -> WorkflowOrchestrator:
    return WorkflowOrchestrator(repo, gateway, config)
