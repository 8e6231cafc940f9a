from .backends import HyDEBackend, NativeBackend, OmarchyBackend, default_backends, detect_backend
from .ir import IR, ConfigLine, LineKind, parse_text
from .patching import apply_patch_text, make_patch, sanitize_patch, validate_patch

__all__ = [
    "IR",
    "ConfigLine",
    "LineKind",
    "parse_text",
    "make_patch",
    "sanitize_patch",
    "apply_patch_text",
    "validate_patch",
    "NativeBackend",
    "HyDEBackend",
    "OmarchyBackend",
    "default_backends",
    "detect_backend",
]
