"""Tests for the keyword goal classifier."""

import pytest

from navigator.classifier import (
    ACTION_TEMPLATES,
    DEFAULT_COUPON_CODE,
    classify,
    extract_coupon_code,
    fallback_analysis,
)
from navigator.models import ActionKind, ActionStatus

SHOPPING_GOAL = "Find a product under $50, add to cart, apply coupon SAVE20, checkout as guest"


class TestClassify:
    """Tests for classify()."""

    def test_shopping_scenario(self):
        """Test the full shopping goal yields the four canned steps in order."""
        actions = classify(SHOPPING_GOAL)

        assert [a.kind for a in actions] == [
            ActionKind.CLICK, ActionKind.CLICK, ActionKind.TYPE, ActionKind.CLICK,
        ]
        assert [a.target.id for a in actions] == ["prod-1", "add-cart", "coupon-input", "checkout-btn"]
        assert actions[2].value == "SAVE20"
        assert [a.order for a in actions] == [1, 2, 3, 4]
        assert all(a.status == ActionStatus.PENDING for a in actions)

    @pytest.mark.parametrize("goal", ["", "   ", "hello world", "log me in please"])
    def test_no_vocabulary_yields_empty_plan(self, goal):
        """Test goals without known keywords produce no actions."""
        assert classify(goal) == []

    def test_none_goal(self):
        """Test a missing goal is treated as empty."""
        assert classify(None) == []

    def test_deterministic(self):
        """Test repeated calls give identical output."""
        assert classify(SHOPPING_GOAL) == classify(SHOPPING_GOAL)

    def test_table_order_not_text_order(self):
        """Test output follows the template table, not keyword position."""
        actions = classify("checkout as guest after you find the product")
        assert [a.target.id for a in actions] == ["prod-1", "checkout-btn"]
        assert [a.order for a in actions] == [1, 2]

    def test_case_insensitive(self):
        """Test matching ignores case."""
        assert [a.id for a in classify("ADD TO CART")] == ["2"]

    def test_coupon_code_from_goal(self):
        """Test the coupon value follows the code named in the goal."""
        actions = classify("apply coupon WELCOME10")
        assert actions[0].value == "WELCOME10"

    def test_coupon_code_default(self):
        """Test the default code is used when the goal names none."""
        actions = classify("apply a coupon code")
        assert actions[0].value == DEFAULT_COUPON_CODE

    def test_every_template_has_bbox(self):
        """Test each template carries a usable bounding box."""
        for template in ACTION_TEMPLATES:
            assert template.target.bbox is not None


class TestExtractCouponCode:
    """Tests for extract_coupon_code()."""

    @pytest.mark.parametrize("goal,expected", [
        ("apply coupon SAVE20, checkout", "SAVE20"),
        ("use coupon code: FREESHIP", "FREESHIP"),
        ("apply coupon code", None),
        ("apply the coupon and pay", None),
        ("", None),
    ])
    def test_extract(self, goal, expected):
        assert extract_coupon_code(goal) == expected


class TestFallbackAnalysis:
    """Tests for fallback_analysis()."""

    def test_shape_matches_classifier(self):
        """Test fallback repackages the classifier output."""
        analysis = fallback_analysis(SHOPPING_GOAL)
        actions = classify(SHOPPING_GOAL)

        assert analysis.actions == actions
        assert analysis.elements == [a.target for a in actions]
        assert analysis.suggested_actions == [a.description for a in actions]
        assert analysis.source == "fallback"
        assert analysis.summary

    def test_empty_goal(self):
        analysis = fallback_analysis("")
        assert analysis.actions == []
        assert analysis.elements == []
