"""
Unified-diff generation and all-or-nothing application.

Patches are line-granular. Line terminators are carried inside the hunk
lines and the "\\ No newline at end of file" marker is honored, so applying
make_patch(a, b) to a always gives back b.
"""
import difflib
import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from hypragent.configuration.ir import split_lines
from hypragent.core.errors import PatchApplyConflict, PatchMalformed

logger = logging.getLogger(__name__)

HUNK_MARKER = '@@'
NO_EOL_MARKER = '\\ No newline at end of file'
_HUNK_HEADER = re.compile(r'^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@')


@dataclass
class Hunk:
    old_start: Optional[int] = None
    old_count: Optional[int] = None
    new_start: Optional[int] = None
    new_count: Optional[int] = None
    # (op, content, implicit) where implicit marks a bare empty line read as context
    ops: list[tuple[str, str, bool]] = field(default_factory=list)

    @property
    def before(self) -> list[str]:
        return [content for op, content, _ in self.ops if op in ' -']

    @property
    def after(self) -> list[str]:
        return [content for op, content, _ in self.ops if op in ' +']

    @property
    def complete(self) -> bool:
        if self.old_count is None or self.new_count is None:
            return False
        return len(self.before) >= self.old_count and len(self.after) >= self.new_count

    def expected_index(self) -> Optional[int]:
        if self.old_start is None:
            return None
        if self.old_count == 0:
            return self.old_start
        return max(self.old_start - 1, 0)

    def trim(self) -> None:
        while self.ops and self.ops[-1][2]:
            self.ops.pop()


def _parse_header(line: str) -> Hunk:
    m = _HUNK_HEADER.match(line)
    if not m:
        return Hunk()
    old_start, old_count, new_start, new_count = m.groups()
    return Hunk(
        old_start=int(old_start),
        old_count=1 if old_count is None else int(old_count),
        new_start=int(new_start),
        new_count=1 if new_count is None else int(new_count),
    )


def make_patch(original: str, modified: str, name: str = 'config', context: int = 3) -> str:
    """
    Unified diff turning `original` into `modified`; empty when they match.
    """
    out = []
    diff = difflib.unified_diff(
        split_lines(original),
        split_lines(modified),
        fromfile=f'a/{name}',
        tofile=f'b/{name}',
        n=context,
    )
    for line in diff:
        if line.endswith('\n'):
            out.append(line)
        else:
            out.append(line + '\n')
            out.append(NO_EOL_MARKER + '\n')
    return ''.join(out)


def sanitize_patch(patch: str) -> str:
    """
    Strip what a model tends to wrap around a diff.

    Code fences go wherever they are. Everything before the first hunk
    header (file headers, "Here is the patch:") and anything between hunks
    that is not a diff body line ("Shall I apply this?") is dropped.
    """
    kept = []
    hunk: Optional[Hunk] = None
    for line in split_lines(patch):
        body = line.rstrip('\r\n')
        if body.strip().startswith('```'):
            continue
        if body.startswith(HUNK_MARKER):
            hunk = _parse_header(body)
            kept.append(line)
            continue
        if hunk is None:
            continue
        if body.startswith('\\'):
            kept.append(line)
            continue
        if hunk.complete:
            continue
        if body == '':
            hunk.ops.append((' ', '\n', True))
            kept.append(line)
        elif body[0] in ' +-':
            hunk.ops.append((body[0], body[1:], False))
            kept.append(line)
    # a body line without its own terminator must be followed by the marker
    if kept and not kept[-1].endswith('\n'):
        kept[-1] += '\n'
    return ''.join(kept)


def has_hunks(patch: str) -> bool:
    return any(line.startswith(HUNK_MARKER) for line in split_lines(patch))


def parse_patch(patch: str) -> list[Hunk]:
    hunks: list[Hunk] = []
    current: Optional[Hunk] = None
    for line in split_lines(patch):
        body = line.rstrip('\n')
        if body.startswith(HUNK_MARKER):
            if current is not None:
                current.trim()
            current = _parse_header(body)
            hunks.append(current)
            continue
        if current is None:
            continue
        if body.startswith('\\'):
            if current.ops:
                op, content, implicit = current.ops[-1]
                if content.endswith('\n'):
                    current.ops[-1] = (op, content[:-1], implicit)
            continue
        if body in ('', '\r'):
            current.ops.append((' ', line, True))
        elif body[0] in ' +-':
            current.ops.append((body[0], line[1:], False))
    if current is not None:
        current.trim()
    return hunks


def _locate(lines: list[str], needle: list[str], expected: int, floor: int) -> Optional[int]:
    if not needle:
        return min(max(expected, floor), len(lines))
    size = len(needle)
    last = len(lines) - size
    if last < floor:
        return None
    expected = min(max(expected, floor), last)
    for dist in range(max(expected - floor, last - expected) + 1):
        for at in ((expected - dist, expected + dist) if dist else (expected,)):
            if floor <= at <= last and lines[at:at + size] == needle:
                return at
    return None


def apply_hunks(text: str, hunks: list[Hunk]) -> str:
    """
    Apply every hunk or none of them.

    Each hunk is first looked for at its header position (shifted by what
    earlier hunks changed), then at the nearest matching position after the
    previous hunk. Raises PatchApplyConflict if any hunk cannot be placed.
    """
    lines = split_lines(text)
    failed = 0
    offset = 0
    cursor = 0
    for index, hunk in enumerate(hunks):
        before, after = hunk.before, hunk.after
        origin = hunk.expected_index()
        expected = cursor if origin is None else origin + offset
        at = _locate(lines, before, expected, cursor)
        if at is None:
            logger.debug("Hunk %d of %d did not match (expected line %d)", index + 1, len(hunks), expected + 1)
            failed += 1
            continue
        lines[at:at + len(before)] = after
        if origin is not None:
            offset = at + len(after) - (origin + len(before))
        cursor = at + len(after)

    if failed:
        raise PatchApplyConflict(failed, len(hunks))
    return ''.join(lines)


def validate_patch(patch: str) -> str:
    """
    Sanitize `patch` and make sure a hunk survived; returns the cleaned text.

    Sanitizing is idempotent, so validated text can be validated again.
    """
    cleaned = sanitize_patch(patch)
    if not has_hunks(cleaned):
        raise PatchMalformed(
            "invalid patch format: missing @@ markers. "
            "The patch must be in unified diff format generated by make_patch tool"
        )
    return cleaned


def apply_patch_text(text: str, patch: str) -> str:
    return apply_hunks(text, parse_patch(validate_patch(patch)))
