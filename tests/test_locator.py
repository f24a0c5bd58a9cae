"""Tests for the locator resolver."""

from conftest import FakeController
from navigator.locator import LocatorResolver, candidate_selectors, click_point
from navigator.models import BoundingBox, UIElement, Viewport

ADD_TO_CART = UIElement(id="add-cart", tag="button", text="Add to Cart", bbox=BoundingBox.of(40, 60, 20, 10))


class TestCandidateSelectors:
    """Tests for selector generation."""

    def test_order(self):
        assert candidate_selectors(ADD_TO_CART) == [
            'text="Add to Cart"',
            '[aria-label*="Add to Cart"]',
            'button:has-text("Add to Cart")',
            'a:has-text("Add to Cart")',
            'input[placeholder*="Add to Cart"]',
            '[title*="Add to Cart"]',
            '[name*="Add to Cart"]',
        ]

    def test_known_selector_first(self):
        element = UIElement(id="x", tag="button", text="Go", selector="#go")
        assert candidate_selectors(element)[0] == "#go"

    def test_quotes_escaped(self):
        element = UIElement(id="x", tag="a", text='Say "hi"')
        assert candidate_selectors(element)[0] == 'text="Say \\"hi\\""'

    def test_blank_text(self):
        assert candidate_selectors(UIElement(id="x", tag="div", text="  ")) == []


class TestResolve:
    """Tests for LocatorResolver.resolve()."""

    async def test_first_unique_match_wins(self):
        controller = FakeController(matches={
            'text="Add to Cart"': 3,
            '[aria-label*="Add to Cart"]': 0,
            'button:has-text("Add to Cart")': 1,
            'a:has-text("Add to Cart")': 1,
        })
        selector = await LocatorResolver(controller).resolve(ADD_TO_CART)
        assert selector == 'button:has-text("Add to Cart")'
        assert len(controller.ops("count")) == 3

    async def test_no_match(self):
        controller = FakeController()
        assert await LocatorResolver(controller).resolve(ADD_TO_CART) is None
        assert len(controller.ops("count")) == 7

    async def test_driver_errors_are_skipped(self):
        controller = FakeController(fail_ops={"count"})
        assert await LocatorResolver(controller).resolve(ADD_TO_CART) is None

    async def test_no_element(self):
        controller = FakeController()
        assert await LocatorResolver(controller).resolve(None) is None
        assert controller.calls == []


class TestClickPoint:
    """Tests for coordinate fallback."""

    def test_center_in_pixels(self):
        assert click_point(ADD_TO_CART, Viewport(1000, 500)) == (500, 325)

    def test_zero_size_box(self):
        element = UIElement(id="x", tag="div", text="", bbox=BoundingBox.of(10, 10, 0, 0))
        assert click_point(element, Viewport(200, 100)) == (20, 10)

    def test_no_bbox(self):
        assert click_point(UIElement(id="x", tag="div", text="Go"), Viewport(800, 600)) is None
        assert click_point(None, Viewport(800, 600)) is None
