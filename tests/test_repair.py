"""
Tests for extraction artifact repair.
"""

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


class TestRepairRules:
    """Tests for the trusted repair steps."""

    def test_minus_variants(self):
        from pdf_dictation.utils.repair import repair_line

        assert repair_line("3 − 4 – 5 — 6") == "3 - 4 - 5 - 6"

    def test_vulgar_fraction(self):
        from pdf_dictation.utils.repair import repair_line

        assert repair_line("½ cup") == "1/2 cup"
        assert repair_line("⅞") == "7/8"

    def test_mixed_number_keeps_whole_part(self):
        from pdf_dictation.utils.repair import repair_line

        assert repair_line("1½ cups") == "1 1/2 cups"

    @pytest.mark.parametrize("raw", ["3 / 4", "3/ 4", "3 /4", "3__4", "3 _ _ 4"])
    def test_split_fraction_collapsed(self, raw):
        from pdf_dictation.utils.repair import repair_line

        assert repair_line(raw) == "3/4"

    def test_caret_power(self):
        from pdf_dictation.utils.repair import repair_line

        assert "x²" in repair_line("x ^ 2")
        assert repair_line("y^3 + 1") == "y³ + 1"

    def test_caret_power_needs_single_letter(self):
        from pdf_dictation.utils.repair import repair_line

        assert repair_line("ab ^ 2") == "ab ^ 2"

    def test_group_power(self):
        from pdf_dictation.utils.repair import repair_line

        assert repair_line("(x+1) 2") == "(x+1)²"
        assert repair_line("(a+b) 2.") == "(a+b)²."

    def test_group_power_skips_decimals(self):
        from pdf_dictation.utils.repair import repair_line

        assert repair_line("(a+b) 2.5") == "(a+b) 2.5"

    def test_inverse_trig(self):
        from pdf_dictation.utils.repair import repair_line

        assert repair_line("sin ¹(x)") == "sin⁻¹(x)"
        assert repair_line("COS¹ (y)") == "COS⁻¹(y)"

    def test_unmatched_text_unchanged(self):
        from pdf_dictation.utils.repair import repair_line

        text = "Nothing to repair here."
        assert repair_line(text) == text
        assert repair_line("") == ""


class TestMinusHeuristics:
    """Tests for missing-minus reinsertion."""

    def test_inside_parentheses(self):
        from pdf_dictation.utils.repair import repair_line

        assert repair_line("(x 1)") == "(x - 1)"
        assert repair_line("(2x  5)") == "(2x - 5)"

    def test_absolute_value(self):
        from pdf_dictation.utils.repair import repair_line

        assert repair_line("|x 5|") == "|x - 5|"

    def test_between_terms(self):
        from pdf_dictation.utils.repair import repair_line

        assert repair_line("3x 2y = 7") == "3x - 2y = 7"

    def test_before_closing_parenthesis(self):
        from pdf_dictation.utils.repair import repair_line

        assert repair_line("y = x 5)") == "y = x - 5)"

    def test_known_false_positive(self):
        from pdf_dictation.utils.repair import repair_line

        # Juxtaposed numbers are read as a dropped minus
        assert repair_line("(2 5)") == "(2 - 5)"

    def test_heuristics_can_be_disabled(self):
        from pdf_dictation.utils.repair import repair_line

        assert repair_line("(x 1)", heuristics=False) == "(x 1)"
        assert repair_line("x ^ 2", heuristics=False) == "x²"

    def test_repair_lines_keeps_order(self):
        from pdf_dictation.utils.repair import repair_lines

        assert repair_lines(["(x 1)", "plain", "½"]) == ["(x - 1)", "plain", "1/2"]


class TestRuleOrder:
    """Rules run in a fixed order over each other's output."""

    def test_rules_are_ordered_tuples(self):
        from pdf_dictation.utils.repair import REPAIR_RULES, MINUS_HEURISTIC_RULES

        assert [r.name for r in REPAIR_RULES] == [
            "minus_variants", "vulgar_fractions", "spaced_fraction",
            "underscore_fraction", "caret_power", "group_power", "inverse_trig",
        ]
        assert len(MINUS_HEURISTIC_RULES) == 4

    def test_minus_normalized_before_heuristics(self):
        from pdf_dictation.utils.repair import repair_line

        assert repair_line("(x − 1)") == "(x - 1)"

    @pytest.mark.parametrize("text", ["x ^ 2", "3 / 4", "½", "(x+1) 2", "sin ¹(x)"])
    def test_each_step_idempotent(self, text):
        from pdf_dictation.utils.repair import REPAIR_RULES

        for rule in REPAIR_RULES:
            once = rule.apply(text)
            assert rule.apply(once) == once
            text = once
