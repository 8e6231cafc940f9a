"""Tests for the lossless configuration line model."""

import pytest

from hypragent.configuration.ir import LineKind, parse_text, split_lines

SAMPLE = """# Monitors
monitor=,preferred,auto,1

$mainMod = SUPER
exec-once waybar

general {
    gaps_in = 5
    border_size = 2
}
bind = $mainMod, Q, exec, kitty
"""


class TestRoundTrip:
    @pytest.mark.parametrize(
        "text",
        [
            SAMPLE,
            "",
            "\n",
            "\n\n\n",
            "a=1",
            "a=1\nb=2",
            "a=1\r\nb=2\r\n",
            "mixed\r\nendings\nhere",
            "trailing spaces   \n\tindented = yes\n",
            "form\x0cfeed = 1\n",
            "unicode = ünïcødé   sep\n",
        ],
    )
    def test_unmodified_ir_reproduces_source(self, text):
        assert parse_text(text).to_text() == text

    def test_raw_text_is_kept_verbatim(self):
        ir = parse_text("   key   =   value   \n")
        line = ir.lines[0]
        assert line.raw == "   key   =   value   "
        assert line.key == "key"
        assert line.value == "value"


class TestClassification:
    def test_sample_kinds(self):
        kinds = [line.kind for line in parse_text(SAMPLE).lines]
        assert kinds == [
            LineKind.COMMENT,
            LineKind.KEY_VALUE,
            LineKind.EMPTY,
            LineKind.VARIABLE,
            LineKind.UNKNOWN,
            LineKind.EMPTY,
            LineKind.SECTION_START,
            LineKind.KEY_VALUE,
            LineKind.KEY_VALUE,
            LineKind.SECTION_END,
            LineKind.KEY_VALUE,
        ]

    def test_line_numbers_are_one_based(self):
        ir = parse_text(SAMPLE)
        assert [line.line_num for line in ir.lines] == list(range(1, 12))

    def test_variable_splits_on_first_equals(self):
        line = parse_text("$cmd = a=b\n").lines[0]
        assert line.kind == LineKind.VARIABLE
        assert line.key == "$cmd"
        assert line.value == "a=b"

    def test_variable_without_value(self):
        line = parse_text("$lonely\n").lines[0]
        assert line.kind == LineKind.VARIABLE
        assert line.key is None

    def test_section_name_is_captured(self):
        line = parse_text("device:epic-mouse-v1 {\n").lines[0]
        assert line.kind == LineKind.SECTION_START
        assert line.key == "device:epic-mouse-v1"

    def test_indented_comment_and_close(self):
        ir = parse_text("    # note\n  }\n")
        assert ir.lines[0].kind == LineKind.COMMENT
        assert ir.lines[1].kind == LineKind.SECTION_END

    def test_whitespace_only_is_empty(self):
        assert parse_text(" \t \n").lines[0].kind == LineKind.EMPTY

    def test_find_by_key(self):
        ir = parse_text(SAMPLE)
        assert [line.value for line in ir.find("border_size")] == ["2"]

    def test_to_dict_uses_plain_kind_names(self):
        data = parse_text("a = 1\n").to_dict()
        assert data["lines"][0]["kind"] == "key_value"
        assert data["lines"][0]["raw"] == "a = 1"


def test_split_lines_only_breaks_on_newline():
    assert split_lines("a\x0cb\nc\r\nd") == ["a\x0cb\n", "c\r\n", "d"]
    assert split_lines("") == []
