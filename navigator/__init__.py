"""Vision-to-Workflow Navigator 包

包含各个模块：
- models: 数据模型
- classifier: 目标分类（关键词规则表）
- planner: 规划模块（视觉模型 + 规则表兜底）
- locator: 定位模块
- controller: 浏览器驱动
- executor: 执行器
- memory: 执行日志
- artifacts: 产物生成
- speech: 语音输入输出
- core: 核心 Agent 类
"""

from .models import Action, AgentState, Analysis, Artifact, BoundingBox, LogEntry, UIElement
from .classifier import classify
from .config import ErrorPolicy, Settings
from .planner import Planner
from .locator import LocatorResolver
from .controller import Controller, open_controller
from .executor import CancelToken, StepExecutor
from .memory import RunLog
from .artifacts import generate_artifacts
from .core import NavigatorAgent

__all__ = [
    "Action",
    "AgentState",
    "Analysis",
    "Artifact",
    "BoundingBox",
    "LogEntry",
    "UIElement",
    "classify",
    "ErrorPolicy",
    "Settings",
    "Planner",
    "LocatorResolver",
    "Controller",
    "open_controller",
    "CancelToken",
    "StepExecutor",
    "RunLog",
    "generate_artifacts",
    "NavigatorAgent",
]
