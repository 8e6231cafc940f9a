import asyncio
import logging
from typing import Optional

from hypragent.config import AgentSettings
from hypragent.core.domain import StatusEvent, status_event
from hypragent.core.errors import AgentTimeout, ProviderError, ToolNotFound, TurnLimitExceeded
from hypragent.core.providers import ChatProvider
from hypragent.core.registry import ToolRegistry
from hypragent.models import Message, Role, ToolCall

logger = logging.getLogger(__name__)

LOOP_LIMIT_TEXT = (
    "Error: Agent loop limit reached without final response. "
    "I got stuck trying to solve this."
)
INTERRUPTED_TEXT = "Error: tool call interrupted before it returned a result"


class Orchestrator:
    """
    Runs the conversation: history in, model response out, tools in between.

    One Orchestrator owns one conversation. process_message must not be
    called concurrently on the same instance.
    """

    def __init__(
        self,
        provider: ChatProvider,
        registry: ToolRegistry,
        system_prompt: str = '',
        settings: Optional[AgentSettings] = None,
    ):
        self.provider = provider
        self.registry = registry
        self.system_prompt = system_prompt
        self.settings = settings or AgentSettings()
        self.updates: asyncio.Queue[StatusEvent] = asyncio.Queue(maxsize=self.settings.status_buffer)
        self._history: list[Message] = []

    @property
    def history(self) -> list[Message]:
        return list(self._history)

    def reset(self) -> None:
        self._history = []

    def _emit(self, message: str, diff: Optional[str] = None) -> None:
        try:
            self.updates.put_nowait(status_event(message, diff))
        except asyncio.QueueFull:
            pass

    async def process_message(self, user_text: str, timeout: Optional[float] = None) -> str:
        """
        Handle one user message and return the model's final answer.

        `timeout` bounds the whole call. Raises AgentTimeout when it expires,
        ProviderError when the model backend fails; cancellation propagates
        unchanged. Tool failures never raise, the model sees them as results.
        """
        logger.info("Processing user input: %s", user_text)
        self._emit("Analysing request...")

        if not self._history and self.system_prompt:
            self._history.append(Message.system(self.system_prompt))
        self._close_dangling_calls()
        self._history.append(Message.user(user_text))

        try:
            async with asyncio.timeout(timeout):
                return await self._loop()
        except TimeoutError:
            self._emit("Request timed out")
            raise AgentTimeout(
                "LLM request timed out after waiting too long. The API may be slow or unavailable"
            ) from None
        except asyncio.CancelledError:
            self._emit("Request cancelled")
            raise
        except TurnLimitExceeded:
            logger.info("Agent loop limit reached")
            self._emit("Error: Loop limit reached")
            return LOOP_LIMIT_TEXT

    async def _loop(self) -> str:
        for turn in range(1, self.settings.max_turns + 1):
            logger.debug("Agent loop turn: %d", turn)
            self._emit(f"Thinking (Turn {turn})...")

            try:
                response = await self.provider.chat(self.history, self.registry.definitions())
            except (TimeoutError, asyncio.CancelledError):
                raise
            except Exception as e:
                logger.info("LLM error: %s", e)
                self._emit("Error communicating with LLM")
                if isinstance(e, ProviderError):
                    raise
                raise ProviderError(str(e)) from e
            logger.debug(
                "Received response from LLM (content len: %d, tool calls: %d)",
                len(response.content), len(response.tool_calls),
            )

            self._history.append(response)
            if not response.tool_calls:
                logger.info("Final response received")
                self._emit("Done")
                return response.content

            results = await self._dispatch(response.tool_calls)
            self._history.extend(results)

        raise TurnLimitExceeded(f"no final answer after {self.settings.max_turns} turns")

    async def _dispatch(self, calls: list[ToolCall]) -> list[Message]:
        """
        Run every call concurrently and return the results in call order.
        """
        results: list[Optional[Message]] = [None] * len(calls)

        async def run(index: int, call: ToolCall) -> None:
            results[index] = Message.tool_result(call, await self._execute(call))

        await asyncio.gather(*(run(i, call) for i, call in enumerate(calls)))
        return results

    async def _execute(self, call: ToolCall) -> str:
        logger.info("Tool call request: %s(%s)", call.name, call.arguments)
        tool = self.registry.get(call.name)
        if tool is None:
            error = ToolNotFound(call.name)
            logger.info("Error: %s", error)
            return f"Error: {error}"

        if tool.status_label:
            self._emit(tool.status_label)
        try:
            output = await asyncio.to_thread(tool.execute, call.arguments)
        except Exception as e:
            logger.info("Tool execution error (%s): %s", call.name, e)
            self._emit(f"Error in {call.name}: {e}")
            return f"Error: {e}"

        logger.debug("Tool output (%s): %s", call.name, output)
        self._emit(f"Finished {call.name}", output if tool.emits_diff else None)
        return output

    def _close_dangling_calls(self) -> None:
        """
        Answer tool calls left without results by an aborted call.

        Providers reject a history where an assistant tool call has no
        matching tool message.
        """
        for pos in range(len(self._history) - 1, -1, -1):
            message = self._history[pos]
            if message.role == Role.TOOL:
                continue
            if message.role != Role.ASSISTANT or not message.tool_calls:
                return
            answered = {m.tool_call_id for m in self._history[pos + 1:]}
            for call in message.tool_calls:
                if call.id not in answered:
                    self._history.append(Message.tool_result(call, INTERRUPTED_TEXT))
            return
