"""
Canonical conversation messages.

Provider adapters translate these to and from their own wire shapes; the
orchestrator only ever sees these types.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class Role(str, Enum):
    SYSTEM = 'system'
    USER = 'user'
    ASSISTANT = 'assistant'
    TOOL = 'tool'


@dataclass
class ToolCall:
    """
    A model request to run one capability.

    `arguments` is the JSON-serialized argument object, exactly as the
    capability will decode it.
    """
    id: str
    name: str
    arguments: str = '{}'


@dataclass
class ToolDefinition:
    name: str
    description: str
    parameters: dict[str, Any] = field(default_factory=dict)

    def to_openai_tool(self) -> dict[str, Any]:
        return {
            'type': 'function',
            'function': {
                'name': self.name,
                'description': self.description,
                'parameters': self.parameters,
            },
        }


@dataclass
class Message:
    role: Role
    content: str = ''
    tool_calls: list[ToolCall] = field(default_factory=list)
    tool_call_id: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def system(cls, content: str) -> 'Message':
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> 'Message':
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str, tool_calls: Optional[list[ToolCall]] = None) -> 'Message':
        return cls(role=Role.ASSISTANT, content=content, tool_calls=list(tool_calls or []))

    @classmethod
    def tool_result(cls, call: ToolCall, content: str) -> 'Message':
        return cls(role=Role.TOOL, content=content, tool_call_id=call.id, name=call.name)
