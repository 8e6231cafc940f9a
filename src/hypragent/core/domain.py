"""
Data shared between the orchestrator, the capabilities and the front-end.
"""

from enum import Enum
from typing import Literal, Optional, TypedDict


class BackendType(str, Enum):
    NATIVE = 'native'
    HYDE = 'hyde'
    OMARCHY = 'omarchy'


class StatusEvent(TypedDict, total=False):
    type: Literal['status']
    message: str
    diff: Optional[str]


def status_event(message: str, diff: Optional[str] = None) -> StatusEvent:
    return {'type': 'status', 'message': message, 'diff': diff}
