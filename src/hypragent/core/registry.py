"""
Capabilities the model can call, and the table they are looked up in.
"""
import logging
from typing import ClassVar, Iterable, Optional, Type

from pydantic import BaseModel, ValidationError

from hypragent.core.errors import ToolExecutionError
from hypragent.models import ToolDefinition

logger = logging.getLogger(__name__)


class NoArgs(BaseModel):
    pass


class Capability:
    """
    One tool: a name, a pydantic argument model, and `run`.

    `execute` decodes the model's JSON arguments against `args_model` and
    hands the validated object to `run`. Errors are raised, the orchestrator
    turns them into tool-result text.
    """
    name: ClassVar[str]
    description: ClassVar[str]
    args_model: ClassVar[Type[BaseModel]] = NoArgs
    status_label: ClassVar[Optional[str]] = None
    emits_diff: ClassVar[bool] = False

    def definition(self) -> ToolDefinition:
        schema = self.args_model.model_json_schema()
        schema.pop('title', None)
        for prop in schema.get('properties', {}).values():
            prop.pop('title', None)
        schema.setdefault('properties', {})
        return ToolDefinition(name=self.name, description=self.description, parameters=schema)

    def parse_args(self, arguments: str) -> BaseModel:
        try:
            return self.args_model.model_validate_json(arguments or '{}')
        except ValidationError as e:
            details = '; '.join(f"{'.'.join(map(str, err['loc'])) or 'arguments'}: {err['msg']}" for err in e.errors())
            raise ToolExecutionError(f"invalid arguments for {self.name}: {details}") from e

    def execute(self, arguments: str) -> str:
        return self.run(self.parse_args(arguments))

    def run(self, args) -> str:
        raise NotImplementedError


class ToolRegistry:
    def __init__(self, tools: Iterable[Capability] = ()):
        self._tools: dict[str, Capability] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: Capability) -> None:
        self._tools[tool.name] = tool
        logger.debug("Registered tool %s", tool.name)

    def get(self, name: str) -> Optional[Capability]:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def definitions(self) -> list[ToolDefinition]:
        return [tool.definition() for tool in self._tools.values()]

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
