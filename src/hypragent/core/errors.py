"""
Error kinds raised across the agent core.

Tool-level errors (ToolNotFound, ToolExecutionError, AccessDenied,
PatchMalformed, PatchApplyConflict) never reach the caller of
Orchestrator.process_message; they are turned into tool-result content.
"""


class HyprAgentError(Exception):
    """Base class for every error raised by hypragent."""


class ConfigError(HyprAgentError):
    pass


class AgentTimeout(HyprAgentError, TimeoutError):
    pass


class ProviderError(HyprAgentError):
    pass


class TurnLimitExceeded(HyprAgentError):
    pass


class ToolNotFound(HyprAgentError):
    def __init__(self, name: str):
        super().__init__(f"Tool {name} not found")
        self.name = name


class ToolExecutionError(HyprAgentError):
    pass


class AccessDenied(ToolExecutionError):
    def __init__(self, reason: str):
        super().__init__(f"access denied: {reason}")
        self.reason = reason


class PatchMalformed(ToolExecutionError):
    pass


class PatchApplyConflict(ToolExecutionError):
    def __init__(self, failed: int, total: int):
        super().__init__(
            f"patch application failed: {failed} out of {total} hunks failed to apply. "
            "The file may have been modified since you read it. "
            "Please re-read the file and regenerate the patch"
        )
        self.failed = failed
        self.total = total


class SnapshotFailure(ToolExecutionError):
    pass


class SnapshotNotFound(SnapshotFailure):
    def __init__(self, snapshot_id: str):
        super().__init__(f"snapshot {snapshot_id} not found")
        self.snapshot_id = snapshot_id
