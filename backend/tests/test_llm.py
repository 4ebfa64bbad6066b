import asyncio
from types import SimpleNamespace

import pytest

from interview_agent.ai import llm
from interview_agent.ai.llm import CompletionRequest, mask_api_key
from interview_agent.errors import CompletionError


REQUEST = CompletionRequest(system_instruction="return json", user_prompt="hello", max_output_tokens=64)


def _openai_stub(create):
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


def _anthropic_stub(create):
    return SimpleNamespace(messages=SimpleNamespace(create=create))


@pytest.mark.asyncio
async def test_missing_api_key_fails_without_calling_provider():
    client = llm.OpenAICompletionClient(api_key="")
    calls = []

    async def _create(*args, **kwargs):
        calls.append(kwargs)

    client._client = _openai_stub(_create)

    with pytest.raises(CompletionError):
        await client.complete(REQUEST)
    assert calls == []


@pytest.mark.asyncio
async def test_openai_completion_success():
    client = llm.OpenAICompletionClient(api_key="sk-test", model="gpt-test")
    seen = {}

    async def _create(*args, **kwargs):
        seen.update(kwargs)
        message = SimpleNamespace(content='{"ok": true}')
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    client._client = _openai_stub(_create)

    result = await client.complete(REQUEST)

    assert result == '{"ok": true}'
    assert seen["model"] == "gpt-test"
    assert seen["max_tokens"] == 64
    assert seen["messages"][0] == {"role": "system", "content": "return json"}


@pytest.mark.asyncio
async def test_anthropic_completion_joins_text_blocks():
    client = llm.AnthropicCompletionClient(api_key="sk-ant-test")
    seen = {}

    async def _create(*args, **kwargs):
        seen.update(kwargs)
        return SimpleNamespace(
            content=[
                SimpleNamespace(type="text", text='{"a": '),
                SimpleNamespace(type="tool_use", text="ignored"),
                SimpleNamespace(type="text", text="1}"),
            ]
        )

    client._client = _anthropic_stub(_create)

    result = await client.complete(REQUEST)

    assert result == '{"a": 1}'
    assert seen["system"] == "return json"
    assert seen["model"] == llm.DEFAULT_ANTHROPIC_MODEL


@pytest.mark.asyncio
async def test_failure_without_retries_raises_completion_error():
    client = llm.OpenAICompletionClient(api_key="sk-test")
    attempts = []

    async def _boom(*args, **kwargs):
        attempts.append(1)
        raise RuntimeError("forced")

    client._client = _openai_stub(_boom)

    with pytest.raises(CompletionError, match="forced"):
        await client.complete(REQUEST)
    assert len(attempts) == 1


@pytest.mark.asyncio
async def test_retry_recovers_after_failure():
    client = llm.OpenAICompletionClient(api_key="sk-test", retries=1)
    attempts = []

    async def _flaky(*args, **kwargs):
        attempts.append(1)
        if len(attempts) == 1:
            raise RuntimeError("transient")
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content="done"))])

    client._client = _openai_stub(_flaky)

    assert await client.complete(REQUEST) == "done"
    assert len(attempts) == 2


@pytest.mark.asyncio
async def test_timeout_becomes_completion_error():
    client = llm.AnthropicCompletionClient(api_key="sk-ant-test", timeout_sec=0.05)

    async def _hang(*args, **kwargs):
        await asyncio.sleep(5)

    client._client = _anthropic_stub(_hang)

    with pytest.raises(CompletionError):
        await client.complete(REQUEST)


def test_set_api_key_drops_cached_client_and_masks():
    client = llm.AnthropicCompletionClient(api_key="")
    client._client = object()
    assert client.masked_api_key() is None

    client.set_api_key("  sk-ant-api03-very-secret  ")

    assert client._client is None
    assert client.masked_api_key() == "sk-ant-api03..."


def test_mask_api_key():
    assert mask_api_key(None) is None
    assert mask_api_key("short") == "short..."
    assert mask_api_key("sk-proj-1234567890abcdef") == "sk-proj-1234..."


def test_build_client_follows_provider(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(llm, "LLM_PROVIDER", "openai")
    assert isinstance(llm.build_completion_client(), llm.OpenAICompletionClient)

    monkeypatch.setattr(llm, "LLM_PROVIDER", "anthropic")
    assert isinstance(llm.build_completion_client(), llm.AnthropicCompletionClient)


def test_base_call_loop_cannot_be_instantiated():
    with pytest.raises(TypeError):
        llm._RetryingCompletionClient(api_key="sk-test")
