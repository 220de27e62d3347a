import pytest
from pydantic_ai.messages import ModelMessage, ModelResponse
from pydantic_ai.models.function import AgentInfo, FunctionModel
from pydantic_ai.models.test import TestModel

from contentflow.errors import GatewayError
from contentflow.gateway.agent import AgentCompletionGateway


@pytest.mark.asyncio
async def test_agent_gateway_returns_text_and_usage():
    gateway = AgentCompletionGateway(TestModel(custom_output_text="Market is USD 2 billion."))

    completion = await gateway.complete("Summarize the drone market", 400, 0.2)

    assert completion.text == "Market is USD 2 billion."
    assert completion.input_tokens and completion.input_tokens > 0
    assert completion.output_tokens and completion.output_tokens > 0
    assert completion.model == gateway.model_name


@pytest.mark.asyncio
async def test_agent_gateway_wraps_provider_errors():
    def unavailable(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        raise ConnectionError("provider unreachable")

    gateway = AgentCompletionGateway(FunctionModel(unavailable))

    with pytest.raises(GatewayError) as exc_info:
        await gateway.complete("prompt", 100, 0.3)
    assert "provider unreachable" in str(exc_info.value)


def test_agent_gateway_accepts_model_names():
    gateway = AgentCompletionGateway("openai:gpt-4o-mini", system_prompt="Be brief.")
    assert gateway.model_name == "openai:gpt-4o-mini"
