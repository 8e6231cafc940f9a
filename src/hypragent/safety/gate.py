"""
Path authorization for every file the agent touches.

Paths are normalized lexically (no symlink resolution) and must stay inside
the configuration root. Inside the root, a path is allowed when it matches
one of the backend's allowed files, by relative path or by basename, or
sits under one of its allowed directories.
"""
import logging
import os
from pathlib import Path
from typing import Mapping, Union

from hypragent.config import BackendSecurity
from hypragent.core.domain import BackendType
from hypragent.core.errors import AccessDenied

logger = logging.getLogger(__name__)


def _normalize(path: str) -> Path:
    return Path(os.path.normpath(path))


class SecurityGate:
    def __init__(self, config_root: Union[str, Path], policies: Mapping[BackendType, BackendSecurity]):
        self.config_root = _normalize(os.path.abspath(os.path.expanduser(str(config_root))))
        self.policies = dict(policies)

    def resolve(self, target: Union[str, Path]) -> Path:
        raw = os.path.expanduser(str(target))
        if not os.path.isabs(raw):
            raw = os.path.join(self.config_root, raw)
        return _normalize(raw)

    def check(self, variant: Union[BackendType, str], target: Union[str, Path]) -> Path:
        """
        Return the normalized absolute path if `variant` may access it.

        Raises AccessDenied with a reason naming the path and the backend.
        """
        try:
            variant = BackendType(variant)
        except ValueError:
            raise AccessDenied(f"unknown backend type: {variant}") from None
        policy = self.policies.get(variant)
        if policy is None:
            raise AccessDenied(f"no security policy for {variant.value} backend")

        path = self.resolve(target)
        if not path.is_relative_to(self.config_root):
            logger.warning("Denied %s: outside %s", path, self.config_root)
            raise AccessDenied(
                f"path {target} is outside the Hyprland config directory {self.config_root} "
                f"({variant.value} backend)"
            )

        rel = path.relative_to(self.config_root).as_posix()
        for allowed in policy.allowed_files:
            if rel == os.path.normpath(allowed) or path.name == allowed:
                return path

        for allowed_dir in policy.allowed_dirs:
            dir_path = _normalize(os.path.join(self.config_root, allowed_dir))
            if path == dir_path or path.is_relative_to(dir_path):
                return path

        logger.warning("Denied %s: not in the %s allow-list", rel, variant.value)
        raise AccessDenied(f"path {rel} is not in the allowed list for {variant.value} backend")

    def is_path_allowed(self, variant: Union[BackendType, str], target: Union[str, Path]) -> bool:
        try:
            self.check(variant, target)
        except AccessDenied:
            return False
        return True
