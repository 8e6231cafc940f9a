"""
Installation layouts the agent knows how to edit.

Native is the plain ~/.config/hypr layout. HyDE and Omarchy are
distributions that ship their own tree on top of it; both also contain a
hyprland.conf, so they have to be checked before Native.
"""
import logging
import os
from pathlib import Path
from typing import Optional, Union

from hypragent.configuration.ir import IR, parse_text
from hypragent.configuration.patching import apply_patch_text, make_patch
from hypragent.core.errors import ToolExecutionError
from hypragent.core.domain import BackendType

logger = logging.getLogger(__name__)

PRIMARY_CONFIG = 'hyprland.conf'


def read_text(path: Union[str, Path]) -> str:
    with open(path, encoding='utf-8', newline='') as fh:
        return fh.read()


def write_text(path: Union[str, Path], text: str) -> None:
    with open(path, 'w', encoding='utf-8', newline='') as fh:
        fh.write(text)


class NativeBackend:
    type = BackendType.NATIVE

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        self.config_path: Optional[Path] = None

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}(root={str(self.root)!r})'

    def detect(self, root: Optional[Union[str, Path]] = None) -> bool:
        if root is not None:
            self.root = Path(root)
        candidate = self.root / PRIMARY_CONFIG
        if candidate.is_file():
            self.config_path = candidate
            return True
        return False

    def list_sources(self) -> list[str]:
        if self.config_path is None:
            raise ToolExecutionError("config path not detected")
        return [str(self.config_path)]

    def parse(self, path: Optional[Union[str, Path]] = None) -> IR:
        target = path or self.config_path
        if target is None:
            raise ToolExecutionError("config path not set")
        return parse_text(read_text(target))

    def generate_patch(self, old_ir: IR, new_ir: IR) -> str:
        name = self.config_path.name if self.config_path else PRIMARY_CONFIG
        return make_patch(old_ir.to_text(), new_ir.to_text(), name=name)

    def apply_patch(self, path: Optional[Union[str, Path]], patch_text: str) -> str:
        """
        Patch `path` (default: the primary config) in place.

        The file is only rewritten when every hunk applied. Returns the path
        that was written.
        """
        target = path or self.config_path
        if target is None:
            raise ToolExecutionError("config path not set")
        try:
            current = read_text(target)
        except OSError as e:
            raise ToolExecutionError(f"failed to read config file {target}: {e}") from e

        patched = apply_patch_text(current, patch_text)
        try:
            write_text(target, patched)
        except OSError as e:
            raise ToolExecutionError(f"failed to write patched file: {e}") from e
        logger.info("Patched %s (%d -> %d bytes)", target, len(current), len(patched))
        return str(target)


class HyDEBackend(NativeBackend):
    type = BackendType.HYDE

    markers = ('hyde.conf',)
    marker_dirs = ('Configs', 'scripts')
    companions = ('hyde.conf', 'userprefs.conf', 'keybindings.conf', 'windowrules.conf', 'monitors.conf')

    def detect(self, root: Optional[Union[str, Path]] = None) -> bool:
        if root is not None:
            self.root = Path(root)

        found = (
            bool(os.environ.get('HYDE_CONFIG_HOME'))
            or any((self.root / name).is_file() for name in self.markers)
            or any((self.root / name).is_dir() for name in self.marker_dirs)
        )
        if found:
            self.config_path = self.root / PRIMARY_CONFIG
        return found

    def list_sources(self) -> list[str]:
        sources = super().list_sources()
        if not self.config_path.is_file():
            sources = []
        for name in self.companions:
            path = self.root / name
            if path.is_file():
                sources.append(str(path))
        if not sources:
            raise ToolExecutionError(f"no configuration files found under {self.root}")
        return sources


class OmarchyBackend(NativeBackend):
    type = BackendType.OMARCHY

    def detect(self, root: Optional[Union[str, Path]] = None) -> bool:
        if root is not None:
            self.root = Path(root)
        if not (self.root / 'omarchy').is_dir():
            return False
        return super().detect()


def default_backends(root: Union[str, Path]) -> list[NativeBackend]:
    """Backends in detection priority order, most specific first."""
    return [HyDEBackend(root), OmarchyBackend(root), NativeBackend(root)]


def detect_backend(backends: list[NativeBackend]) -> Optional[NativeBackend]:
    for backend in backends:
        try:
            if backend.detect():
                logger.info("Detected %s installation at %s", backend.type.value, backend.root)
                return backend
        except OSError:
            logger.debug("Detection failed for %s", backend.type.value, exc_info=True)
    return None
