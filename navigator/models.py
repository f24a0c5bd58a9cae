"""数据模型定义

页面元素、动作、执行日志、产物以及 Agent 聚合状态。
所有会被 UI 渲染的实体都是不可变的，状态迁移通过 replace 生成新对象。
"""

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Tuple


class ActionKind(str, Enum):
    CLICK = "click"
    TYPE = "type"
    SELECT = "select"
    WAIT = "wait"
    NAVIGATE = "navigate"
    SCROLL = "scroll"


class ActionStatus(str, Enum):
    PENDING = "pending"
    ANALYZING = "analyzing"
    READY = "ready"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (ActionStatus.COMPLETED, ActionStatus.FAILED)


class LogStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class ArtifactKind(str, Enum):
    SCREENSHOT = "screenshot"
    SCRIPT = "script"
    RUN_LOG = "run-log"
    SUMMARY = "summary"


class AgentPhase(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    ANALYZING = "analyzing"
    PLANNING = "planning"
    EXECUTING = "executing"
    COMPLETED = "completed"
    ERROR = "error"


DEFAULT_WAIT_MS = 1000
DEFAULT_SCROLL_PX = 300
MAX_WAIT_MS = 60_000
MAX_SCROLL_PX = 10_000


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, float(value)))


def parse_amount(value: Optional[str], default: int, low: int, high: int) -> int:
    """动作的数值参数（等待毫秒、滚动像素），无法解析时用默认值，结果限制在 [low, high]"""
    if value is None:
        return default
    try:
        amount = float(str(value).strip())
    except ValueError:
        return default
    if math.isnan(amount):
        return default
    return int(_clamp(amount, low, high))


@dataclass(frozen=True)
class Viewport:
    """页面实际可视区域（像素）"""
    width: int
    height: int


@dataclass(frozen=True)
class BoundingBox:
    """元素边界框，单位为可视区域的百分比（0-100）"""
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def of(cls, x: float, y: float, width: float, height: float) -> "BoundingBox":
        return cls(x, y, width, height).clamped()

    def clamped(self) -> "BoundingBox":
        """裁剪到 [0, 100]，并保证 x+width ≤ 100、y+height ≤ 100"""
        x = _clamp(self.x)
        y = _clamp(self.y)
        width = min(_clamp(self.width), 100.0 - x)
        height = min(_clamp(self.height), 100.0 - y)
        return BoundingBox(x, y, width, height)

    def center(self) -> Tuple[float, float]:
        # 宽高为 0 时退化为左上角
        return self.x + self.width / 2, self.y + self.height / 2

    def to_pixels(self, viewport: Viewport) -> Tuple[float, float]:
        cx, cy = self.center()
        return cx / 100 * viewport.width, cy / 100 * viewport.height


@dataclass(frozen=True)
class UIElement:
    """规划阶段给出的抽象元素描述"""
    id: str
    tag: str
    text: str
    bbox: Optional[BoundingBox] = None
    selector: Optional[str] = None  # 已知的具体 locator
    clickable: Optional[bool] = None
    inputable: Optional[bool] = None


@dataclass(frozen=True)
class Action:
    """计划中的单个动作"""
    id: str
    kind: ActionKind
    description: str
    order: int
    target: Optional[UIElement] = None
    value: Optional[str] = None
    status: ActionStatus = ActionStatus.PENDING
    reason: Optional[str] = None
    locator: Optional[str] = None  # 执行时解析出的 locator

    @property
    def label(self) -> str:
        return f"{self.kind.value}: {self.description}"

    @property
    def wait_ms(self) -> int:
        return parse_amount(self.value, DEFAULT_WAIT_MS, 0, MAX_WAIT_MS)

    @property
    def scroll_px(self) -> int:
        return parse_amount(self.value, DEFAULT_SCROLL_PX, -MAX_SCROLL_PX, MAX_SCROLL_PX)

    def transition(self, status: ActionStatus, **changes) -> "Action":
        return replace(self, status=status, **changes)


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class LogEntry:
    """执行日志中的一条记录（只追加，不修改）"""
    timestamp: str
    action: str
    status: LogStatus
    details: Optional[str] = None

    @classmethod
    def now(cls, action: str, status: LogStatus, details: Optional[str] = None) -> "LogEntry":
        return cls(timestamp=utc_now(), action=action, status=status, details=details)

    def to_dict(self) -> dict:
        record = {"timestamp": self.timestamp, "action": self.action, "status": self.status.value}
        if self.details is not None:
            record["details"] = self.details
        return record


@dataclass(frozen=True)
class Artifact:
    kind: ArtifactKind
    content: str
    filename: Optional[str] = None


@dataclass(frozen=True)
class Analysis:
    """视觉/规划结果"""
    elements: List[UIElement]
    summary: str
    suggested_actions: List[str]
    actions: List[Action]
    source: str = "model"  # model|fallback


@dataclass(frozen=True)
class ExecutionResult:
    success: bool
    actions: List[Action]
    logs: List[LogEntry]
    screenshot: Optional[bytes] = None
    cancelled: bool = False


@dataclass(frozen=True)
class AgentState:
    """UI 渲染的唯一数据源"""
    phase: AgentPhase = AgentPhase.IDLE
    goal: str = ""
    actions: List[Action] = field(default_factory=list)
    logs: List[LogEntry] = field(default_factory=list)
    artifacts: List[Artifact] = field(default_factory=list)
    current_step: Optional[int] = None
    error: Optional[str] = None
