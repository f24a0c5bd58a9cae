"""执行模块：对 Playwright Page 的薄封装

所有 Playwright 异常统一转换为 AutomationError，由执行器记录到日志。
"""

import functools
from contextlib import asynccontextmanager
from typing import AsyncIterator

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, async_playwright

from .config import Settings
from .errors import AutomationError
from .logger import logger
from .models import Viewport

DEFAULT_VIEWPORT = {"width": 1280, "height": 800}


def _wrap_errors(func):
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except PlaywrightError as e:
            raise AutomationError(f"{func.__name__} 失败: {e.message}") from e
    return wrapper


class Controller:
    """执行模块：独占一个 Page，执行导航、点击、输入等操作"""

    def __init__(self, page: Page):
        self.page = page

    @_wrap_errors
    async def navigate(self, url: str) -> None:
        await self.page.goto(url)
        logger.info(f"✓ 打开 {url}")

    @_wrap_errors
    async def screenshot(self) -> bytes:
        return await self.page.screenshot(type="png")

    @_wrap_errors
    async def viewport(self) -> Viewport:
        """读取页面实际尺寸，而不是假定固定大小"""
        size = await self.page.evaluate("() => ({width: window.innerWidth, height: window.innerHeight})")
        return Viewport(width=int(size["width"]), height=int(size["height"]))

    @_wrap_errors
    async def count(self, selector: str) -> int:
        return await self.page.locator(selector).count()

    @_wrap_errors
    async def click(self, selector: str) -> None:
        await self.page.locator(selector).click()
        logger.info(f"✓ 点击 {selector}")

    @_wrap_errors
    async def click_at(self, x: float, y: float) -> None:
        await self.page.mouse.click(x, y)
        logger.info(f"✓ 坐标点击 ({x:.0f}, {y:.0f})")

    @_wrap_errors
    async def fill(self, selector: str, text: str) -> None:
        await self.page.locator(selector).fill(text)
        logger.info(f"✓ 填充 {selector} = '{text}'")

    @_wrap_errors
    async def type_text(self, text: str) -> None:
        await self.page.keyboard.type(text)
        logger.info(f"✓ 键入 '{text}'")

    @_wrap_errors
    async def select(self, selector: str, value: str) -> None:
        await self.page.locator(selector).select_option(value)
        logger.info(f"✓ 选择 {selector} = '{value}'")

    @_wrap_errors
    async def wait(self, ms: int) -> None:
        await self.page.wait_for_timeout(ms)
        logger.info(f"✓ 等待 {ms}ms")

    @_wrap_errors
    async def scroll(self, dx: int, dy: int) -> None:
        await self.page.mouse.wheel(dx, dy)
        logger.info(f"✓ 滚动 ({dx}, {dy})")


@asynccontextmanager
async def open_controller(settings: Settings) -> AsyncIterator[Controller]:
    """
    启动浏览器并返回 Controller，退出时无论成功与否都会关闭浏览器。
    """
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=settings.headless)
        try:
            page = await browser.new_page(viewport=DEFAULT_VIEWPORT)
            yield Controller(page)
        finally:
            await browser.close()
            logger.info("✓ 浏览器已关闭")
