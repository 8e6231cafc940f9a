from .message import Message, Role, ToolCall, ToolDefinition
from .turn import Turn

__all__ = ["Message", "Role", "ToolCall", "ToolDefinition", "Turn"]
