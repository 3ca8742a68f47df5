"""Unit tests for core.timeticks module."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest

from core.timeticks import elapsed, format_duration


class TestFormatDuration:
    @pytest.mark.parametrize("ticks, expected", [
        (1, "1s"),
        (100, "1s"),
        (101, "2s"),
        (5901, "60s"),
        (59_999, "600s"),
        (60_000, "1min"),
        (359_999, "6min"),
        (360_000, "1h"),
        (8_639_999, "24h"),
        (8_640_000, "1d"),
        (8_640_001, "2d"),
    ])
    def test_bands_round_up(self, ticks, expected):
        assert format_duration(ticks) == expected

    def test_non_positive(self):
        assert format_duration(0) == "0s"
        assert format_duration(-50) == "0s"

    def test_elapsed(self):
        assert elapsed(10_000, 4_099) == "60s"
