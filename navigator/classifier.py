"""目标分类模块：基于关键词表把目标文本映射成预设动作

这是一个简单的规则表，不是语言理解组件。
没有配置视觉模型或模型调用失败时，planner 用它生成兜底计划。
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .models import Action, ActionKind, Analysis, BoundingBox, UIElement

DEFAULT_COUPON_CODE = "SAVE20"

FALLBACK_SUMMARY = (
    "E-commerce product listing page with multiple products, "
    "shopping cart, and checkout options"
)

# 优惠码须为大写字母/数字，避免把 "coupon code" 中的 code 当成优惠码
_COUPON_PATTERN = re.compile(r"(?i:coupon)(?:\s+(?i:code))?\s*[:=]?\s+([A-Z0-9][A-Z0-9_-]{2,})\b")


@dataclass(frozen=True)
class ActionTemplate:
    """关键词 → 动作模板"""
    keywords: Tuple[str, ...]
    id: str
    kind: ActionKind
    description: str
    target: UIElement
    value: Optional[str] = None

    def matches(self, goal_lower: str) -> bool:
        return any(keyword in goal_lower for keyword in self.keywords)


# 顺序即输出顺序，与关键词在目标中出现的先后无关
ACTION_TEMPLATES: Tuple[ActionTemplate, ...] = (
    ActionTemplate(
        keywords=("product", "find"),
        id="1",
        kind=ActionKind.CLICK,
        description="Click on first product under $50",
        target=UIElement(
            id="prod-1", tag="div", text="Product Card - $29.99",
            bbox=BoundingBox.of(10, 20, 20, 15), clickable=True,
        ),
    ),
    ActionTemplate(
        keywords=("cart", "add"),
        id="2",
        kind=ActionKind.CLICK,
        description="Click Add to Cart button",
        target=UIElement(
            id="add-cart", tag="button", text="Add to Cart",
            bbox=BoundingBox.of(40, 60, 15, 5), clickable=True,
        ),
    ),
    ActionTemplate(
        keywords=("coupon", "apply"),
        id="3",
        kind=ActionKind.TYPE,
        description="Enter coupon code",
        target=UIElement(
            id="coupon-input", tag="input", text="Coupon code",
            bbox=BoundingBox.of(30, 70, 20, 4), inputable=True,
        ),
        value=DEFAULT_COUPON_CODE,
    ),
    ActionTemplate(
        keywords=("checkout", "guest"),
        id="4",
        kind=ActionKind.CLICK,
        description="Proceed to checkout as guest",
        target=UIElement(
            id="checkout-btn", tag="button", text="Checkout",
            bbox=BoundingBox.of(35, 85, 15, 5), clickable=True,
        ),
    ),
)


def extract_coupon_code(goal: str) -> Optional[str]:
    match = _COUPON_PATTERN.search(goal or "")
    return match.group(1) if match else None


def classify(goal: str, templates: Tuple[ActionTemplate, ...] = ACTION_TEMPLATES) -> List[Action]:
    """
    把目标文本映射为有序动作列表。

    纯函数：同样的输入总是得到同样的输出。没有命中任何关键词时返回空列表，
    调用方应把它当作“无事可做”而不是失败。
    """
    goal_lower = (goal or "").lower()
    coupon = extract_coupon_code(goal)

    actions: List[Action] = []
    for template in templates:
        if not template.matches(goal_lower):
            continue
        value = template.value
        if template.value == DEFAULT_COUPON_CODE and coupon:
            value = coupon
        actions.append(Action(
            id=template.id,
            kind=template.kind,
            description=template.description,
            order=len(actions) + 1,
            target=template.target,
            value=value,
        ))
    return actions


def fallback_analysis(goal: str) -> Analysis:
    """把分类结果包装成与视觉模型相同的返回结构"""
    actions = classify(goal)
    return Analysis(
        elements=[a.target for a in actions if a.target is not None],
        summary=FALLBACK_SUMMARY,
        suggested_actions=[a.description for a in actions],
        actions=actions,
        source="fallback",
    )
