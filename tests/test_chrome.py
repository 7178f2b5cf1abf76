"""
Tests for running header/footer removal.
"""

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


class TestChromeThreshold:
    """Tests for the repetition threshold."""

    @pytest.mark.parametrize("page_count,expected", [
        (0, 2), (1, 2), (3, 2), (4, 2), (5, 2), (6, 3), (10, 5),
    ])
    def test_threshold(self, page_count, expected):
        from pdf_dictation.utils.chrome import chrome_threshold

        assert chrome_threshold(page_count) == expected


class TestFrequencyRule:
    """Tests for repeated-line detection."""

    def test_repeated_header_detected(self):
        from pdf_dictation.utils.chrome import find_repeating_lines

        pages = [["Header", "a"], ["Header", "b"], ["Header", "c"], ["d"]]

        assert find_repeating_lines(pages) == {"Header"}

    def test_repeats_on_one_page_count_once(self):
        from pdf_dictation.utils.chrome import find_repeating_lines

        pages = [["X", "X", "X"], ["y"], ["z"]]

        assert find_repeating_lines(pages) == set()

    def test_exact_match_only(self):
        from pdf_dictation.utils.chrome import find_repeating_lines

        pages = [["Chapter 1 Notes"], ["Chapter 1 notes"], ["other"]]

        assert find_repeating_lines(pages) == set()

    def test_page_footer_on_three_of_four_pages(self):
        from pdf_dictation.utils.chrome import filter_chrome

        pages = [
            ["Intro text", "Page 3 of 4"],
            ["More text", "Page 3 of 4"],
            ["Even more", "Page 3 of 4"],
            ["Unique closing line"],
        ]

        result = filter_chrome(pages, use_junk_patterns=False)

        assert "Page 3 of 4" in result.chrome_lines
        assert all("Page 3 of 4" not in kept for kept in result.pages)
        assert result.pages[3] == ["Unique closing line"]
        assert result.dropped_count == 3


class TestJunkPatterns:
    """Tests for the fixed junk line shapes."""

    @pytest.mark.parametrize("line", [
        "Page 8",
        "Page 8 of 10",
        "page 12",
        "Unit 7_Book_1.indb 42",
        "C:\\Users\\student\\notes",
        "~/Documents/algebra",
        "42",
        "108  ",
        "8 Algebra 1 • Unit 7 Lesson 2",
    ])
    def test_junk(self, line):
        from pdf_dictation.utils.chrome import is_junk_line

        assert is_junk_line(line)

    @pytest.mark.parametrize("line", [
        "7",
        "The page was blank.",
        "x² + 2x + 1 = 0",
        "Homepage 3",
    ])
    def test_not_junk(self, line):
        from pdf_dictation.utils.chrome import is_junk_line

        assert not is_junk_line(line)

    def test_junk_dropped_on_single_page(self):
        from pdf_dictation.utils.chrome import filter_chrome

        result = filter_chrome([["Body line.", "Page 1", "7"]])

        assert result.pages == [["Body line.", "7"]]

    def test_junk_patterns_can_be_disabled(self):
        from pdf_dictation.utils.chrome import filter_chrome

        result = filter_chrome([["Body line.", "Page 1"]], use_junk_patterns=False)

        assert result.pages == [["Body line.", "Page 1"]]


class TestFilterChrome:
    """Tests for the combined filter output."""

    def test_page_text_joined_with_newlines(self):
        from pdf_dictation.utils.chrome import filter_chrome

        result = filter_chrome([["Title", "first", "second"], ["Title", "third"]])

        assert result.page_texts == ["first\nsecond", "third"]
        assert result.chrome_lines == {"Title"}

    def test_empty_document(self):
        from pdf_dictation.utils.chrome import filter_chrome

        result = filter_chrome([])

        assert result.pages == []
        assert result.page_texts == []
        assert result.dropped_count == 0

    def test_to_dict(self):
        from pdf_dictation.utils.chrome import filter_chrome

        result = filter_chrome([["B", "A"], ["A", "B"]])

        assert result.to_dict() == {"chrome_lines": ["A", "B"], "dropped_count": 4}
