"""
Tests for reply splitting and delivery pacing.
"""

import pytest

from relay_bot.humanizer.splitter import split_reply
from relay_bot.humanizer.timing import (
    MIN_DELAY_SECONDS,
    PACING_PROFILES,
    ChunkSize,
    NaturalTiming,
    calculate_pause,
    classify_chunk,
)


class TestSplitReply:

    def test_blank_lines_and_indentation_dropped(self):
        assert split_reply("a\n\nb\n  \nc") == ["a", "b", "c"]

    def test_single_line_is_trimmed(self):
        assert split_reply("  single  ") == ["single"]

    def test_empty_input(self):
        assert split_reply("") == []

    def test_whitespace_only_input(self):
        assert split_reply(" \n \n ") == []

    def test_order_preserved(self):
        answer = "Hi there!\nOur store opens at 9.\n\n   It closes at 18."
        assert split_reply(answer) == ["Hi there!", "Our store opens at 9.", "It closes at 18."]

    def test_inner_spaces_kept(self):
        assert split_reply("a  b\nc   d") == ["a  b", "c   d"]


class TestPacing:

    @pytest.mark.parametrize("chunk, expected", [
        ("ok", ChunkSize.SHORT),
        ("x" * 100, ChunkSize.MEDIUM),
        ("x" * 300, ChunkSize.LONG),
        ("", ChunkSize.SHORT),
    ])
    def test_classify_chunk(self, chunk, expected):
        assert classify_chunk(chunk) == expected

    @pytest.mark.parametrize("mode", ["uniform", "natural", "variable", "unknown"])
    def test_pause_bounds(self, mode):
        for chunk in ["ok", "x" * 100, "x" * 300]:
            for _ in range(50):
                pause = calculate_pause(chunk, mode)
                assert pause > 0
                if mode in ("natural", "variable"):
                    profile = PACING_PROFILES[classify_chunk(chunk)]
                    assert MIN_DELAY_SECONDS <= pause <= profile["max"]

    def test_natural_timing_delay_positive(self):
        timing = NaturalTiming("natural")
        for _ in range(20):
            assert timing.get_delay("hello there") >= MIN_DELAY_SECONDS

    def test_typing_duration_bounds(self):
        timing = NaturalTiming()
        assert timing.get_typing_duration(1) == 1.0
        assert timing.get_typing_duration(10_000) == 6.0
        assert 1.0 <= timing.get_typing_duration(60) <= 6.0
