"""产物生成：执行摘要、可回放的 Playwright 脚本、JSON 运行日志

全部是最终状态的纯函数，同样的输入得到同样的输出，不访问网络和文件系统。
"""

import base64
import json
from typing import List, Optional, Sequence

from .config import DEFAULT_START_URL
from .models import Action, ActionKind, ActionStatus, Artifact, ArtifactKind, LogEntry

SUMMARY_FILENAME = "execution-summary.md"
SCRIPT_FILENAME = "workflow_test.py"
RUN_LOG_FILENAME = "run-log.json"
SCREENSHOT_FILENAME = "final-screenshot.png.b64"


def _one_line(text: str) -> str:
    return " ".join((text or "").split())


def render_summary(goal: str, actions: Sequence[Action]) -> str:
    completed = sum(1 for a in actions if a.status == ActionStatus.COMPLETED)
    if not actions:
        result = "nothing to execute"
    elif completed == len(actions):
        result = "success"
    else:
        result = "failed"

    lines = [
        "# Execution Summary",
        "",
        f"**Goal**: {_one_line(goal)}",
        "",
        f"**Actions Executed**: {len(actions)}",
    ]
    for i, action in enumerate(actions, start=1):
        line = f"{i}. {action.kind.value}: {_one_line(action.description)} - {action.status.value}"
        if action.status == ActionStatus.FAILED and action.reason:
            line += f" ({_one_line(action.reason)})"
        lines.append(line)
    lines.extend([
        "",
        f"**Completed**: {completed}/{len(actions)}",
        f"**Result**: {result}",
        "",
    ])
    return "\n".join(lines)


def _statement(action: Action, index: int) -> List[str]:
    """单个动作对应的脚本语句；未解析出 locator 时使用占位符"""
    kind = action.kind
    selector = action.locator or f"#selector-{index}"
    value = action.value or ""

    if kind == ActionKind.CLICK:
        return [f"page.click({selector!r})"]
    if kind == ActionKind.TYPE:
        return [f"page.fill({selector!r}, {value!r})"]
    if kind == ActionKind.SELECT:
        return [f"page.select_option({selector!r}, {value!r})"]
    if kind == ActionKind.WAIT:
        return [f"page.wait_for_timeout({action.wait_ms})"]
    if kind == ActionKind.NAVIGATE:
        return [f"page.goto({value!r})"]
    if kind == ActionKind.SCROLL:
        return [f"page.mouse.wheel(0, {action.scroll_px})"]
    return ["pass"]


def render_script(actions: Sequence[Action], start_url: Optional[str] = None) -> str:
    """生成 pytest-playwright 风格的测试脚本"""
    url = start_url or DEFAULT_START_URL
    lines = [
        '"""Automated workflow from vision analysis."""',
        "",
        "from playwright.sync_api import Page",
        "",
        "",
        "def test_workflow(page: Page):",
        "    # Navigate to target site",
        f"    page.goto({url!r})",
    ]
    for i, action in enumerate(actions, start=1):
        lines.append("")
        lines.append(f"    # Step {i}: {_one_line(action.description)}")
        if action.locator is None and action.kind in (ActionKind.CLICK, ActionKind.TYPE, ActionKind.SELECT):
            lines.append("    # placeholder selector, replace before running")
        lines.extend(f"    {stmt}" for stmt in _statement(action, i))
    lines.append("")
    return "\n".join(lines)


def render_run_log(logs: Sequence[LogEntry]) -> str:
    return json.dumps([entry.to_dict() for entry in logs], indent=2, ensure_ascii=False)


def generate_artifacts(
    goal: str,
    actions: Sequence[Action],
    logs: Sequence[LogEntry],
    start_url: Optional[str] = None,
) -> List[Artifact]:
    return [
        Artifact(ArtifactKind.SUMMARY, render_summary(goal, actions), SUMMARY_FILENAME),
        Artifact(ArtifactKind.SCRIPT, render_script(actions, start_url), SCRIPT_FILENAME),
        Artifact(ArtifactKind.RUN_LOG, render_run_log(logs), RUN_LOG_FILENAME),
    ]


def screenshot_artifact(png: bytes) -> Artifact:
    return Artifact(ArtifactKind.SCREENSHOT, base64.b64encode(png).decode("ascii"), SCREENSHOT_FILENAME)
