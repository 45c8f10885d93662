"""Tests for the explanation policy."""
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from explain.policy import should_explain
from schemas import ExplanationSettings, MoveClassification


class TestAlwaysExplained:
    """Poor, brilliant and best moves are explained whatever the eval change."""

    @pytest.mark.parametrize("classification", [
        MoveClassification.BLUNDER,
        MoveClassification.MISTAKE,
        MoveClassification.INACCURACY,
        MoveClassification.PERFECT,
        MoveClassification.SPLENDID,
        MoveClassification.BEST,
    ])
    @pytest.mark.parametrize("eval_change", [0.0, 2.5, -30.0])
    def test_explained_regardless_of_delta(self, classification, eval_change):
        assert should_explain(classification, eval_change) is True


class TestExcellent:

    def test_follows_flag_below_threshold(self):
        assert should_explain(MoveClassification.EXCELLENT, 1.0, ExplanationSettings()) is False
        assert should_explain(
            MoveClassification.EXCELLENT, 1.0, ExplanationSettings(explain_excellent=True)
        ) is True

    def test_explained_above_threshold_even_when_disabled(self):
        assert should_explain(MoveClassification.EXCELLENT, -7.5, ExplanationSettings()) is True


class TestOpening:

    def test_disabled_by_default(self):
        settings = ExplanationSettings(explain_opening=False, min_eval_change=5)
        assert should_explain(MoveClassification.OPENING, 0, settings) is False

    def test_enabled_flag(self):
        settings = ExplanationSettings(explain_opening=True, min_eval_change=5)
        assert should_explain(MoveClassification.OPENING, 0, settings) is True


class TestThreshold:

    def test_threshold_is_inclusive(self):
        assert should_explain(MoveClassification.OKAY, 5.0) is True

    def test_below_threshold(self):
        assert should_explain(MoveClassification.OKAY, 4.99) is False
        assert should_explain(MoveClassification.FORCED, 0.0) is False

    def test_negative_change_uses_magnitude(self):
        assert should_explain(MoveClassification.FORCED, -12.0) is True

    def test_custom_threshold(self):
        settings = ExplanationSettings(min_eval_change=20)
        assert should_explain(MoveClassification.OKAY, 15.0, settings) is False
        assert should_explain(MoveClassification.OKAY, 20.0, settings) is True
