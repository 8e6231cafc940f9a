"""
Lossless line model of a Hyprland configuration file.

Every line keeps its original text and terminator, so an IR that has not
been modified serializes back to the exact bytes it was parsed from.
"""
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Optional


class LineKind(str, Enum):
    EMPTY = 'empty'
    COMMENT = 'comment'
    VARIABLE = 'variable'
    KEY_VALUE = 'key_value'
    SECTION_START = 'section_start'
    SECTION_END = 'section_end'
    UNKNOWN = 'unknown'


@dataclass
class ConfigLine:
    line_num: int
    raw: str
    kind: LineKind
    eol: str = '\n'
    key: Optional[str] = None
    value: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data['kind'] = self.kind.value
        return data


@dataclass
class IR:
    lines: list[ConfigLine] = field(default_factory=list)

    def to_text(self) -> str:
        return ''.join(line.raw + line.eol for line in self.lines)

    def to_dict(self) -> dict[str, Any]:
        return {'lines': [line.to_dict() for line in self.lines]}

    def find(self, key: str) -> list[ConfigLine]:
        return [line for line in self.lines if line.key == key]


def split_lines(text: str) -> list[str]:
    """
    Split on '\\n' only, keeping terminators.

    str.splitlines() also breaks on form feeds and unicode separators, which
    would not survive a round-trip.
    """
    parts = text.split('\n')
    lines = [part + '\n' for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def _split_eol(line: str) -> tuple[str, str]:
    if line.endswith('\r\n'):
        return line[:-2], '\r\n'
    if line.endswith('\n'):
        return line[:-1], '\n'
    return line, ''


def _split_assignment(text: str) -> tuple[str, Optional[str]]:
    key, sep, value = text.partition('=')
    if not sep:
        return text.strip(), None
    return key.strip(), value.strip()


def classify(line_num: int, raw: str, eol: str = '\n') -> ConfigLine:
    trimmed = raw.strip()
    line = ConfigLine(line_num=line_num, raw=raw, kind=LineKind.UNKNOWN, eol=eol)

    if not trimmed:
        line.kind = LineKind.EMPTY
    elif trimmed.startswith('#'):
        line.kind = LineKind.COMMENT
    elif trimmed.startswith('$'):
        line.kind = LineKind.VARIABLE
        if '=' in trimmed:
            line.key, line.value = _split_assignment(trimmed)
    elif trimmed.endswith('{'):
        line.kind = LineKind.SECTION_START
        line.key = trimmed[:-1].strip()
    elif trimmed == '}':
        line.kind = LineKind.SECTION_END
    elif '=' in trimmed:
        line.kind = LineKind.KEY_VALUE
        line.key, line.value = _split_assignment(trimmed)
    return line


def parse_text(text: str) -> IR:
    lines = []
    for num, chunk in enumerate(split_lines(text), start=1):
        raw, eol = _split_eol(chunk)
        lines.append(classify(num, raw, eol))
    return IR(lines=lines)
