"""规划模块：调用视觉模型分析截图并生成动作计划

没有配置 API Key，或模型调用/解析出现任何问题时，退回到 classifier 的规则表结果。
模型只调用一次，不重试。
"""

import base64
import re
from typing import List, Optional, Sequence, Tuple

from openai import AsyncOpenAI
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .classifier import fallback_analysis
from .config import Settings
from .errors import OracleError
from .logger import logger
from .models import Action, ActionKind, Analysis, BoundingBox, UIElement


class OracleBox(BaseModel):
    x: float
    y: float
    width: float
    height: float


class OracleElement(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    tag: str
    text: str
    bounding_box: OracleBox = Field(alias="boundingBox")
    clickable: Optional[bool] = None
    inputable: Optional[bool] = None

    def to_element(self) -> UIElement:
        box = self.bounding_box
        return UIElement(
            id=self.id,
            tag=self.tag,
            text=self.text,
            bbox=BoundingBox.of(box.x, box.y, box.width, box.height),
            clickable=self.clickable,
            inputable=self.inputable,
        )


class OracleResponse(BaseModel):
    """模型返回的 JSON 结构，字段缺失即视为解析失败"""
    model_config = ConfigDict(populate_by_name=True)

    elements: List[OracleElement]
    summary: str
    suggested_actions: List[str] = Field(alias="suggestedActions")


SYSTEM_PROMPT = (
    "你是一个基于视觉的 Web UI 自动化智能体。\n"
    "你将看到一张网页截图以及用户的目标。\n"
    "任务：\n"
    "1. 找出所有可交互元素（按钮、链接、输入框、下拉框等）。\n"
    "2. 对每个元素给出：标签类型、可见文本、边界框（百分比坐标 0-100）。\n"
    "3. 给出实现用户目标的动作序列，每条以动作类型开头"
    "（click/type/select/wait/navigate/scroll），输入的内容用双引号括起来。\n"
    "你必须且只能输出 JSON 字符串，格式如下：\n"
    "{\n"
    "  \"elements\": [\n"
    "    {\n"
    "      \"id\": \"unique-id\",\n"
    "      \"tag\": \"button|input|a|div|...\",\n"
    "      \"text\": \"可见文本或描述\",\n"
    "      \"boundingBox\": {\"x\": 0, \"y\": 0, \"width\": 0, \"height\": 0},\n"
    "      \"clickable\": true,\n"
    "      \"inputable\": false\n"
    "    }\n"
    "  ],\n"
    "  \"summary\": \"用 1-2 句话描述页面内容\",\n"
    "  \"suggestedActions\": [\"click Add to Cart\", \"type \\\"SAVE20\\\" into Coupon code\"]\n"
    "}"
)

# 动词 → 动作类型，按顺序匹配
VERB_KINDS: Tuple[Tuple[Tuple[str, ...], ActionKind], ...] = (
    (("type", "enter", "fill", "input", "write"), ActionKind.TYPE),
    (("select", "choose", "pick"), ActionKind.SELECT),
    (("wait", "pause"), ActionKind.WAIT),
    (("navigate", "go", "visit"), ActionKind.NAVIGATE),
    (("scroll",), ActionKind.SCROLL),
    (("click", "tap", "press", "open", "proceed", "submit"), ActionKind.CLICK),
)

_WORD = re.compile(r"[a-z0-9$]+")
_QUOTED = re.compile(r"[\"'“‘]([^\"'”’]+)[\"'”’]")
_URL = re.compile(r"https?://\S+")
_NUMBER = re.compile(r"\d+")
_NUMBERING = re.compile(r"^\s*\d+[.)]\s*")
_STOPWORDS = {"the", "and", "for", "into", "with", "then", "from", "click", "type", "enter", "button"}


def extract_json_block(text: str) -> Optional[str]:
    """
    找到文本中第一个顶层的 {...} 块。

    会跳过字符串内部的花括号；括号不配对时返回 None。
    """
    start = text.find("{")
    if start < 0:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def parse_oracle_response(text: str) -> OracleResponse:
    block = extract_json_block(text or "")
    if block is None:
        raise OracleError("no JSON object in model response")
    try:
        return OracleResponse.model_validate_json(block)
    except ValidationError as e:
        raise OracleError(f"invalid model response: {e.error_count()} errors") from e


def _words(text: str) -> List[str]:
    return _WORD.findall(text.lower())


def detect_kind(suggestion: str) -> ActionKind:
    for word in _words(suggestion):
        for verbs, kind in VERB_KINDS:
            if word in verbs:
                return kind
    return ActionKind.CLICK


def match_element(suggestion: str, elements: Sequence[UIElement]) -> Optional[UIElement]:
    """与建议文本词重叠最多的元素，平局取靠前者"""
    wanted = {w for w in _words(suggestion) if len(w) >= 3 and w not in _STOPWORDS}
    best, best_score = None, 0
    for element in elements:
        score = len(wanted & set(_words(element.text)))
        if score > best_score:
            best, best_score = element, score
    return best


def extract_value(suggestion: str, kind: ActionKind) -> Optional[str]:
    if kind == ActionKind.NAVIGATE:
        match = _URL.search(suggestion)
        return match.group(0).rstrip(".,;") if match else None
    if kind in (ActionKind.WAIT, ActionKind.SCROLL):
        match = _NUMBER.search(suggestion)
        return match.group(0) if match else None
    if kind in (ActionKind.TYPE, ActionKind.SELECT):
        match = _QUOTED.search(suggestion)
        return match.group(1) if match else None
    return None


def plan_from_suggestions(suggestions: Sequence[str], elements: Sequence[UIElement]) -> List[Action]:
    """把模型给出的建议文本转换为有序动作列表"""
    actions = []
    for i, raw in enumerate(suggestions):
        suggestion = _NUMBERING.sub("", raw).strip()
        if not suggestion:
            continue
        kind = detect_kind(suggestion)
        target = None
        if kind in (ActionKind.CLICK, ActionKind.TYPE, ActionKind.SELECT):
            target = match_element(suggestion, elements)
        actions.append(Action(
            id=f"step-{i + 1}",
            kind=kind,
            description=suggestion,
            order=len(actions) + 1,
            target=target,
            value=extract_value(suggestion, kind),
        ))
    return actions


class Planner:
    """规划模块：截图 + 目标 → 元素与动作计划"""

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None):
        self.settings = settings
        self.model = settings.model
        if client is None and settings.has_credentials:
            client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                base_url=settings.openai_base_url,
                timeout=settings.oracle_timeout,
                max_retries=0,
            )
        self.client = client

    async def analyze(self, screenshot: Optional[bytes], goal: str) -> Analysis:
        """
        分析截图并生成计划。

        本方法不会抛出模型相关的异常：任何失败都退回到规则表的结果。
        """
        if self.client is None:
            logger.info("未配置 OPENAI_API_KEY，使用规则表生成计划")
            return fallback_analysis(goal)

        try:
            return await self._ask_model(screenshot, goal)
        except Exception as e:
            logger.warning(f"⚠ 视觉模型不可用，使用规则表生成计划: {e}")
            return fallback_analysis(goal)

    async def _ask_model(self, screenshot: Optional[bytes], goal: str) -> Analysis:
        content = [{"type": "text", "text": f"用户目标：\"{goal}\"\n\n请分析截图并给出 JSON。"}]
        if screenshot:
            encoded = base64.b64encode(screenshot).decode("ascii")
            content.append({"type": "image_url", "image_url": {"url": f"data:image/png;base64,{encoded}"}})

        response = await self.client.chat.completions.create(
            model=self.model,
            temperature=0,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": content},
            ],
        )

        output_str = response.choices[0].message.content
        parsed = parse_oracle_response(output_str)

        elements = [e.to_element() for e in parsed.elements]
        actions = plan_from_suggestions(parsed.suggested_actions, elements)
        if not actions:
            raise OracleError("model suggested no actions")

        logger.info(f"✓ 视觉模型识别 {len(elements)} 个元素，生成 {len(actions)} 个动作")
        return Analysis(
            elements=elements,
            summary=parsed.summary,
            suggested_actions=list(parsed.suggested_actions),
            actions=actions,
            source="model",
        )
