"""
The capability set exposed to the model.

Every capability that touches the filesystem goes through the SecurityGate
for the active backend first.
"""
import json
import logging
import os
from typing import Optional

from pydantic import BaseModel, Field

from hypragent.configuration.backends import NativeBackend, read_text
from hypragent.configuration.patching import make_patch, validate_patch
from hypragent.core.errors import ToolExecutionError
from hypragent.core.registry import Capability, ToolRegistry
from hypragent.safety.gate import SecurityGate
from hypragent.safety.snapshot import SnapshotService

logger = logging.getLogger(__name__)


def _dumps(data) -> str:
    return json.dumps(data, ensure_ascii=False)


# --- Discovery ---

class DetectRootTool(Capability):
    name = 'detect_installation_root'
    description = 'Detects the Hyprland installation type and root path'
    status_label = 'Detecting Hyprland installation...'

    def __init__(self, backends: list[NativeBackend]):
        self.backends = backends

    def run(self, args) -> str:
        for backend in self.backends:
            try:
                found = backend.detect()
            except OSError:
                continue
            if not found:
                continue
            try:
                sources = backend.list_sources()
            except ToolExecutionError:
                sources = []
            return _dumps({'type': backend.type.value, 'root': str(backend.root), 'sources': sources})
        return _dumps({'type': 'unknown'})


# --- File access ---

class PathArgs(BaseModel):
    path: str = Field(description='Path relative to the Hyprland config root (~/.config/hypr) or absolute')


class DirArgs(BaseModel):
    path: str = Field(default='.', description='Directory relative to the Hyprland config root or absolute')


class ListDirTool(Capability):
    name = 'list_dir'
    description = 'Lists the contents of a directory within allowed Hyprland configuration directories'
    args_model = DirArgs
    status_label = 'Listing directory contents...'

    def __init__(self, gate: SecurityGate, backend: NativeBackend):
        self.gate = gate
        self.backend = backend

    def run(self, args: DirArgs) -> str:
        path = self.gate.check(self.backend.type, args.path)
        try:
            with os.scandir(path) as it:
                names = sorted(entry.name + ('/' if entry.is_dir() else '') for entry in it)
        except OSError as e:
            raise ToolExecutionError(f"failed to read directory: {e}") from e
        return _dumps(names)


class ReadFileTool(Capability):
    name = 'read_file'
    description = 'Reads the content of a file within the allowed Hyprland configuration directories'
    args_model = PathArgs
    status_label = 'Reading configuration file...'

    def __init__(self, gate: SecurityGate, backend: NativeBackend):
        self.gate = gate
        self.backend = backend

    def run(self, args: PathArgs) -> str:
        path = self.gate.check(self.backend.type, args.path)
        try:
            return read_text(path)
        except (OSError, UnicodeDecodeError) as e:
            raise ToolExecutionError(f"failed to read file: {e}") from e


# --- Parsing ---

class ParseArgs(BaseModel):
    path: Optional[str] = Field(default=None, description='File to parse; defaults to the main config file')


class ParseConfigTool(Capability):
    name = 'parse_config'
    description = (
        'Parses a configuration file into a line-by-line structure '
        '(kind, key, value and the raw text of every line)'
    )
    args_model = ParseArgs
    status_label = 'Parsing configuration structure...'

    def __init__(self, gate: SecurityGate, backend: NativeBackend):
        self.gate = gate
        self.backend = backend

    def run(self, args: ParseArgs) -> str:
        target = self.gate.check(self.backend.type, args.path) if args.path else None
        try:
            ir = self.backend.parse(target)
        except (OSError, UnicodeDecodeError) as e:
            raise ToolExecutionError(f"failed to parse config: {e}") from e
        return _dumps(ir.to_dict())


# --- Patching ---

class MakePatchArgs(BaseModel):
    original: str = Field(description='The original file content')
    modified: str = Field(description='The modified file content')


class MakePatchTool(Capability):
    name = 'make_patch'
    description = (
        'Creates a unified diff patch between original and modified content. '
        'Returns a standard unified diff format.'
    )
    args_model = MakePatchArgs
    status_label = 'Generating configuration patch...'
    emits_diff = True

    def run(self, args: MakePatchArgs) -> str:
        patch = make_patch(args.original, args.modified)
        if not patch.strip():
            raise ToolExecutionError("no changes detected between original and modified content")
        return patch


class ApplyPatchArgs(BaseModel):
    patch: str = Field(description='Unified diff produced by make_patch')
    path: Optional[str] = Field(default=None, description='File to patch; defaults to the main config file')


class ApplyPatchTool(Capability):
    name = 'apply_patch'
    description = (
        'Applies a patch produced by make_patch to a configuration file. '
        'Files are snapshotted first. Only call this after the user confirmed the change.'
    )
    args_model = ApplyPatchArgs
    status_label = 'Requesting to apply patch...'

    def __init__(self, gate: SecurityGate, backend: NativeBackend, snapshots: SnapshotService):
        self.gate = gate
        self.backend = backend
        self.snapshots = snapshots

    def run(self, args: ApplyPatchArgs) -> str:
        patch = validate_patch(args.patch)

        sources = self.backend.list_sources()
        target = self.gate.check(self.backend.type, args.path or sources[0])

        to_snapshot = list(sources)
        if str(target) not in {os.path.normpath(os.path.abspath(src)) for src in sources}:
            to_snapshot.append(str(target))
        snapshot_id = self.snapshots.create_snapshot(to_snapshot)
        logger.info("Snapshot %s taken before patching %s", snapshot_id, target)

        written = self.backend.apply_patch(target, patch)
        return f"Patch applied successfully to {written} (snapshot {snapshot_id})"


# --- Rollback ---

class RollbackArgs(BaseModel):
    snapshot_id: Optional[str] = Field(
        default=None,
        description='The ID of the snapshot to restore. If empty, restores the latest.',
    )


class RollbackTool(Capability):
    name = 'rollback'
    description = 'Restores the configuration from a previous snapshot'
    args_model = RollbackArgs
    status_label = 'Restoring snapshot...'

    def __init__(self, gate: SecurityGate, backend: NativeBackend, snapshots: SnapshotService):
        self.gate = gate
        self.backend = backend
        self.snapshots = snapshots

    def run(self, args: RollbackArgs) -> str:
        snapshot_id = args.snapshot_id or self.snapshots.latest()
        if not snapshot_id:
            raise ToolExecutionError("no snapshots available to restore")

        targets = list(self.snapshots.manifest(snapshot_id).values()) or self.backend.list_sources()
        allowed = [str(self.gate.check(self.backend.type, target)) for target in targets]
        restored = self.snapshots.restore(snapshot_id, allowed)
        if not restored:
            raise ToolExecutionError(f"snapshot {snapshot_id} contains none of {', '.join(allowed)}")
        return f"Restored {len(restored)} file(s) from snapshot {snapshot_id}: {', '.join(restored)}"


def build_registry(
    gate: SecurityGate,
    backend: NativeBackend,
    backends: list[NativeBackend],
    snapshots: SnapshotService,
) -> ToolRegistry:
    return ToolRegistry([
        DetectRootTool(backends),
        ListDirTool(gate, backend),
        ReadFileTool(gate, backend),
        ParseConfigTool(gate, backend),
        MakePatchTool(),
        ApplyPatchTool(gate, backend, snapshots),
        RollbackTool(gate, backend, snapshots),
    ])
