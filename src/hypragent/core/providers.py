"""
Model backends.

The orchestrator only knows ChatProvider.chat(); everything
provider-specific, including reshaping the canonical Message list into a
backend's own message types, stays in here.
"""
import asyncio
import json
import logging
import uuid
from typing import Any, Optional, Protocol

import anthropic
import openai
from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI

from hypragent.config import LLMSettings
from hypragent.core.errors import ConfigError, ProviderError
from hypragent.models import Message, Role, ToolCall, ToolDefinition

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ('openai', 'anthropic', 'gemini', 'ollama')

_TIMEOUTS = (openai.APITimeoutError, anthropic.APITimeoutError)
_TRANSIENT = (
    openai.APIConnectionError, openai.RateLimitError,
    anthropic.APIConnectionError, anthropic.RateLimitError,
)


class ChatProvider(Protocol):
    async def chat(self, history: list[Message], tools: list[ToolDefinition]) -> Message:
        ...


def _load_args(arguments: str) -> dict[str, Any]:
    try:
        args = json.loads(arguments or '{}')
    except ValueError:
        return {}
    return args if isinstance(args, dict) else {}


def to_langchain(message: Message) -> BaseMessage:
    if message.role == Role.SYSTEM:
        return SystemMessage(content=message.content)
    if message.role == Role.USER:
        return HumanMessage(content=message.content)
    if message.role == Role.TOOL:
        return ToolMessage(content=message.content, tool_call_id=message.tool_call_id or '', name=message.name)
    return AIMessage(
        content=message.content,
        tool_calls=[
            {'id': call.id, 'name': call.name, 'args': _load_args(call.arguments), 'type': 'tool_call'}
            for call in message.tool_calls
        ],
    )


def _text(content: Any) -> str:
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get('type') == 'text':
            parts.append(block.get('text', ''))
    return ''.join(parts)


def from_langchain(ai: AIMessage) -> Message:
    """
    Canonical assistant message from a LangChain AIMessage.

    Calls whose arguments did not parse are kept with their raw argument
    string so the capability can report the problem back to the model.
    """
    calls = []
    for tc in ai.tool_calls:
        calls.append(ToolCall(
            id=tc.get('id') or f'call_{uuid.uuid4().hex[:12]}',
            name=tc['name'],
            arguments=json.dumps(tc.get('args') or {}),
        ))
    for tc in ai.invalid_tool_calls:
        calls.append(ToolCall(
            id=tc.get('id') or f'call_{uuid.uuid4().hex[:12]}',
            name=tc.get('name') or '',
            arguments=tc.get('args') or '{}',
        ))
    return Message.assistant(_text(ai.content), calls)


def _retryable(error: Exception) -> bool:
    """Rate limits, dropped connections and server-side failures only."""
    if isinstance(error, _TRANSIENT):
        return True
    status = getattr(error, 'status_code', None)
    return isinstance(status, int) and (status == 429 or status >= 500)


class LangChainChatProvider:
    """
    ChatProvider over any LangChain chat model that supports bind_tools.

    Transient failures are retried up to `max_attempts` times with
    exponential backoff. Cancellation and timeouts are never retried; a
    client-side request timeout surfaces as TimeoutError.
    """

    def __init__(self, llm: BaseChatModel, max_attempts: int = 3, base_delay: float = 1.0):
        self.llm = llm
        self.max_attempts = max_attempts
        self.base_delay = base_delay

    async def chat(self, history: list[Message], tools: list[ToolDefinition]) -> Message:
        llm = self.llm.bind_tools([t.to_openai_tool() for t in tools]) if tools else self.llm
        messages = [to_langchain(m) for m in history]

        last_error: Optional[Exception] = None
        for attempt in range(self.max_attempts):
            if attempt:
                await asyncio.sleep(self.base_delay * 2 ** (attempt - 1))
            try:
                ai = await llm.ainvoke(messages)
            except TimeoutError:
                raise
            except _TIMEOUTS as e:
                raise TimeoutError(str(e)) from e
            except Exception as e:
                last_error = e
                logger.warning("LLM request failed (attempt %d/%d): %s", attempt + 1, self.max_attempts, e)
                if not _retryable(e):
                    break
                continue
            return from_langchain(ai)

        raise ProviderError(f"LLM request failed after {attempt + 1} attempt(s): {last_error}") from last_error


def _require_key(key: str, env_name: str, setting: str) -> str:
    if not key:
        raise ConfigError(
            f"{env_name} not set. Export it or add {setting} under [llm] "
            "in ~/.config/hypragent/config.toml"
        )
    return key


def build_llm(settings: LLMSettings, timeout: Optional[float] = None) -> BaseChatModel:
    """
    Chat model for settings.provider. LangChain's own retries are off,
    LangChainChatProvider does the retrying.
    """
    provider = settings.provider.lower()
    if provider == 'openai':
        return ChatOpenAI(
            model=settings.openai_model,
            api_key=_require_key(settings.openai_api_key, 'OPENAI_API_KEY', 'openai_api_key'),
            temperature=settings.temperature,
            timeout=timeout,
            max_retries=0,
        )
    if provider == 'anthropic':
        return ChatAnthropic(
            model=settings.anthropic_model,
            api_key=_require_key(settings.anthropic_api_key, 'ANTHROPIC_API_KEY', 'anthropic_api_key'),
            temperature=settings.temperature,
            timeout=timeout,
            max_retries=0,
        )
    if provider == 'gemini':
        return ChatGoogleGenerativeAI(
            model=settings.gemini_model,
            google_api_key=_require_key(settings.gemini_api_key, 'GEMINI_API_KEY', 'gemini_api_key'),
            temperature=settings.temperature,
            timeout=timeout,
            max_retries=0,
        )
    if provider == 'ollama':
        return ChatOpenAI(
            model=settings.ollama_model,
            base_url=settings.ollama_host.rstrip('/') + '/v1',
            api_key='ollama',
            temperature=settings.temperature,
            timeout=timeout,
            max_retries=0,
        )
    raise ConfigError(
        f"Unknown LLM provider '{settings.provider}'. Supported: {', '.join(SUPPORTED_PROVIDERS)}"
    )


def build_provider(settings: LLMSettings, timeout: Optional[float] = None) -> LangChainChatProvider:
    return LangChainChatProvider(build_llm(settings, timeout), max_attempts=settings.max_attempts)
