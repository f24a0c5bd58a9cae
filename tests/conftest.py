"""Shared fixtures: an in-memory stand-in for the Playwright controller."""

import asyncio
from contextlib import asynccontextmanager

import pytest

from navigator.config import Settings
from navigator.errors import AutomationError
from navigator.models import Viewport


class FakeController:
    """Records every driver call; selectors match according to ``matches``."""

    def __init__(self, matches=None, fail_ops=(), viewport=Viewport(1000, 500), screenshot=b"png-bytes"):
        self.matches = dict(matches or {})
        self.fail_ops = set(fail_ops)
        self._viewport = viewport
        self._screenshot = screenshot
        self.calls = []
        self.gate = None  # asyncio.Event; click() blocks on it when set
        self.closed = False

    def _record(self, op, *args):
        self.calls.append((op, *args))
        if op in self.fail_ops:
            raise AutomationError(f"{op} failed")

    def ops(self, *names):
        return [c for c in self.calls if c[0] in names]

    async def navigate(self, url):
        self._record("navigate", url)

    async def screenshot(self):
        self._record("screenshot")
        return self._screenshot

    async def viewport(self):
        self._record("viewport")
        return self._viewport

    async def count(self, selector):
        self._record("count", selector)
        return self.matches.get(selector, 0)

    async def click(self, selector):
        self._record("click", selector)
        if self.gate is not None:
            await self.gate.wait()

    async def click_at(self, x, y):
        self._record("click_at", x, y)

    async def fill(self, selector, text):
        self._record("fill", selector, text)

    async def type_text(self, text):
        self._record("type_text", text)

    async def select(self, selector, value):
        self._record("select", selector, value)

    async def wait(self, ms):
        self._record("wait", ms)

    async def scroll(self, dx, dy):
        self._record("scroll", dx, dy)


@pytest.fixture
def controller():
    return FakeController()


@pytest.fixture
def settings():
    return Settings(failure_delay_ms=0)


@pytest.fixture
def controller_factory():
    """Factory usable as ``NavigatorAgent(controller_factory=...)``; exposes the created controllers."""
    created = []

    @asynccontextmanager
    async def factory(_settings):
        fake = FakeController(matches={'text="Add to Cart"': 1})
        fake.gate = factory.gate
        created.append(fake)
        try:
            yield fake
        finally:
            fake.closed = True

    factory.created = created
    factory.gate = None
    return factory


@pytest.fixture
def wait_until():
    """Spin the event loop until ``predicate()`` holds."""

    async def _wait(predicate, attempts=200):
        for _ in range(attempts):
            if predicate():
                return
            await asyncio.sleep(0)
        raise AssertionError("condition never became true")

    return _wait
