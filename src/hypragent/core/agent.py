"""
Wiring: settings in, a ready-to-use Orchestrator out.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from hypragent.config import Settings
from hypragent.configuration.backends import NativeBackend, default_backends, detect_backend
from hypragent.core.orchestrator import Orchestrator
from hypragent.core.prompt import build_system_prompt
from hypragent.core.providers import ChatProvider, build_provider
from hypragent.core.tools import build_registry
from hypragent.safety.gate import SecurityGate
from hypragent.safety.snapshot import SnapshotService

logger = logging.getLogger(__name__)


@dataclass
class Agent:
    orchestrator: Orchestrator
    backend: NativeBackend
    detected: bool
    gate: SecurityGate
    snapshots: SnapshotService


def build_agent(settings: Settings, provider: Optional[ChatProvider] = None) -> Agent:
    """
    Detect the installation under settings.config_root and assemble the agent.

    Falls back to the Native backend when nothing is detected so the model
    can still explore the tree. `provider` overrides the one built from
    settings.llm.
    """
    backends = default_backends(settings.config_root)
    backend = detect_backend(backends)
    detected = backend is not None
    if backend is None:
        logger.warning("No Hyprland installation detected under %s", settings.config_root)
        backend = backends[-1]

    gate = SecurityGate(settings.config_root, settings.security.policies())
    snapshots = SnapshotService(settings.backup_dir)
    registry = build_registry(gate, backend, backends, snapshots)
    prompt = build_system_prompt(backend.type, settings.security.for_backend(backend.type), gate.config_root)

    if provider is None:
        provider = build_provider(settings.llm, timeout=settings.agent.request_timeout)
    orchestrator = Orchestrator(provider, registry, prompt, settings.agent)
    return Agent(orchestrator, backend, detected, gate, snapshots)
