from .gate import SecurityGate
from .snapshot import SnapshotService

__all__ = ["SecurityGate", "SnapshotService"]
