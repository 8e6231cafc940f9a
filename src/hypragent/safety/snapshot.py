"""
Point-in-time backups of configuration files.

Each snapshot is a directory named by a sortable timestamp holding one copy
per file, keyed by basename, plus a manifest.json mapping every basename to
the absolute path it was copied from.
"""
import json
import logging
import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Union

from hypragent.core.errors import SnapshotFailure, SnapshotNotFound

logger = logging.getLogger(__name__)

MANIFEST_NAME = 'manifest.json'
ID_FORMAT = '%Y%m%d-%H%M%S-%f'


def is_snapshot_id(value: str) -> bool:
    """True only for names create_snapshot could have produced."""
    try:
        return datetime.strptime(value, ID_FORMAT).strftime(ID_FORMAT) == value
    except (TypeError, ValueError):
        return False


class SnapshotService:
    def __init__(self, backup_dir: Union[str, Path]):
        self.backup_dir = Path(backup_dir).expanduser()
        self.backup_dir.mkdir(parents=True, exist_ok=True)

    def _allocate(self) -> tuple[str, Path]:
        while True:
            snapshot_id = datetime.now().strftime(ID_FORMAT)
            path = self.backup_dir / snapshot_id
            try:
                path.mkdir(parents=True)
            except FileExistsError:
                continue
            return snapshot_id, path

    def create_snapshot(self, files: Iterable[Union[str, Path]]) -> str:
        """
        Copy `files` into a new snapshot and return its id.

        Nothing is left behind on failure: a missing source or two sources
        sharing a basename removes the partial snapshot and raises
        SnapshotFailure.
        """
        try:
            snapshot_id, snapshot_dir = self._allocate()
        except OSError as e:
            raise SnapshotFailure(f"failed to create snapshot directory: {e}") from e

        manifest: dict[str, str] = {}
        try:
            for src in map(Path, files):
                if src.name in manifest:
                    raise SnapshotFailure(
                        f"cannot snapshot {src}: {manifest[src.name]} has the same file name"
                    )
                shutil.copy2(src, snapshot_dir / src.name)
                manifest[src.name] = os.path.abspath(src)
            (snapshot_dir / MANIFEST_NAME).write_text(json.dumps(manifest, indent=2), encoding='utf-8')
        except SnapshotFailure:
            shutil.rmtree(snapshot_dir, ignore_errors=True)
            raise
        except OSError as e:
            shutil.rmtree(snapshot_dir, ignore_errors=True)
            raise SnapshotFailure(f"failed to copy {e.filename}: {e.strerror}") from e

        logger.info("Created snapshot %s with %d file(s)", snapshot_id, len(manifest))
        return snapshot_id

    def _snapshot_dir(self, snapshot_id: str) -> Path:
        if not is_snapshot_id(snapshot_id):
            raise SnapshotNotFound(snapshot_id)
        path = self.backup_dir / snapshot_id
        if not path.is_dir():
            raise SnapshotNotFound(snapshot_id)
        return path

    def restore(self, snapshot_id: str, target_files: Iterable[Union[str, Path]]) -> list[str]:
        """
        Copy snapshotted files back over `target_files`, matched by basename.

        Targets with no copy in the snapshot are skipped. Returns the paths
        that were restored.
        """
        snapshot_dir = self._snapshot_dir(snapshot_id)
        restored = []
        for target in map(Path, target_files):
            src = snapshot_dir / target.name
            if not src.is_file() or target.name == MANIFEST_NAME:
                continue
            try:
                shutil.copy2(src, target)
            except OSError as e:
                raise SnapshotFailure(f"failed to restore {target}: {e.strerror}") from e
            restored.append(str(target))
        logger.info("Restored %d file(s) from snapshot %s", len(restored), snapshot_id)
        return restored

    def manifest(self, snapshot_id: str) -> dict[str, str]:
        path = self._snapshot_dir(snapshot_id) / MANIFEST_NAME
        if not path.is_file():
            return {}
        try:
            return json.loads(path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            raise SnapshotFailure(f"unreadable manifest for snapshot {snapshot_id}: {e}") from e

    def list_snapshots(self) -> list[str]:
        return sorted(p.name for p in self.backup_dir.iterdir() if p.is_dir() and is_snapshot_id(p.name))

    def latest(self) -> Optional[str]:
        snapshots = self.list_snapshots()
        return snapshots[-1] if snapshots else None
