"""定位模块：把抽象的元素描述解析为具体 locator

按顺序尝试一组由可见文本生成的选择器，返回第一个在页面上恰好命中一个
元素的选择器。全部失败时由调用方退回到按边界框中心坐标点击。
"""

from typing import Callable, List, Optional, Tuple

from .controller import Controller
from .errors import AutomationError
from .logger import logger
from .models import UIElement, Viewport


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


# 精确文本优先，其次是属性包含匹配
SELECTOR_STRATEGIES: Tuple[Callable[[str], str], ...] = (
    lambda t: f'text="{t}"',
    lambda t: f'[aria-label*="{t}"]',
    lambda t: f'button:has-text("{t}")',
    lambda t: f'a:has-text("{t}")',
    lambda t: f'input[placeholder*="{t}"]',
    lambda t: f'[title*="{t}"]',
    lambda t: f'[name*="{t}"]',
)


def candidate_selectors(element: UIElement) -> List[str]:
    """按优先级生成候选选择器"""
    candidates = []
    if element.selector:
        candidates.append(element.selector)
    text = (element.text or "").strip()
    if text:
        escaped = _escape(text)
        candidates.extend(strategy(escaped) for strategy in SELECTOR_STRATEGIES)
    return candidates


def click_point(element: Optional[UIElement], viewport: Viewport) -> Optional[Tuple[float, float]]:
    """边界框中心点对应的像素坐标；没有边界框时返回 None"""
    if element is None or element.bbox is None:
        return None
    return element.bbox.to_pixels(viewport)


class LocatorResolver:
    """定位模块"""

    def __init__(self, controller: Controller):
        self.controller = controller

    async def resolve(self, element: Optional[UIElement]) -> Optional[str]:
        """
        返回第一个恰好匹配一个元素的选择器，找不到时返回 None。
        单个策略抛出的驱动异常视为未命中。
        """
        if element is None:
            return None

        for selector in candidate_selectors(element):
            try:
                count = await self.controller.count(selector)
            except AutomationError as e:
                logger.debug(f"选择器无效 {selector}: {e}")
                continue
            if count == 1:
                logger.debug(f"✓ 定位 {element.text!r} → {selector}")
                return selector

        logger.info(f"⚠ 未能通过选择器定位 {element.text!r}")
        return None
