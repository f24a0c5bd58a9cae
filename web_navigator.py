"""
Vision-to-Workflow Navigator - 基于 Playwright + OpenAI 视觉模型的网页工作流导航

流程说明：
  1. 目标输入：命令行参数、键盘输入或语音（--voice）
  2. 规划：打开页面并截图，交给视觉模型生成动作计划；
     未配置 OPENAI_API_KEY 或模型调用失败时使用关键词规则表
  3. 执行：逐步执行动作，每步记录日志，失败后默认继续下一步
  4. 产物：执行摘要、Playwright 脚本、JSON 运行日志

依赖安装：
    pip install -e .
    playwright install chromium

运行示例：
    python web_navigator.py "Find a product under $50, add to cart, apply coupon SAVE20, checkout as guest"
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from navigator.config import ErrorPolicy, Settings
from navigator.core import NavigatorAgent
from navigator.logger import logger, setup_logging
from navigator.memory import RunLog
from navigator.models import AgentPhase, Artifact
from navigator.speech import VoiceIO


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Turn a spoken or typed goal into browser actions and replayable artifacts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("goal", nargs="?", help="Goal text; prompted for when omitted")
    parser.add_argument("--url", help="Start URL (default: NAVIGATOR_START_URL)")
    parser.add_argument("--out", default="artifacts", help="Directory to write artifacts to")
    parser.add_argument("--voice", action="store_true", help="Read the goal from the microphone and speak progress")
    parser.add_argument(
        "--headless",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Run the browser without a window (default: NAVIGATOR_HEADLESS, true)",
    )
    parser.add_argument("--abort-on-error", action="store_true", help="Stop at the first failed step")
    parser.add_argument("--plan-only", action="store_true", help="Print the plan without opening a browser")
    return parser


def write_artifacts(artifacts: Sequence[Artifact], out_dir: Path) -> List[Path]:
    out_dir.mkdir(parents=True, exist_ok=True)
    paths = []
    for i, artifact in enumerate(artifacts, start=1):
        path = out_dir / (artifact.filename or f"artifact-{i}.txt")
        path.write_text(artifact.content, encoding="utf-8")
        paths.append(path)
    return paths


async def read_goal(agent: NavigatorAgent, goal: Optional[str], voice: Optional[VoiceIO]) -> str:
    if goal:
        return goal
    if voice is not None:
        transcript = await agent.listen(voice)
        if transcript:
            return transcript
        logger.info("语音不可用，改用文本输入")
    return input("\n⌨️ 目标: ").strip()


async def run(args: argparse.Namespace) -> int:
    settings = Settings.from_env()
    if args.headless is not None:
        settings.headless = args.headless
    if args.abort_on_error:
        settings.error_policy = ErrorPolicy.ABORT
    setup_logging(settings.log_level)

    agent = NavigatorAgent(settings)
    voice = VoiceIO() if args.voice else None
    try:
        return await navigate(args, agent, voice)
    finally:
        if voice is not None:
            voice.close()


async def navigate(args: argparse.Namespace, agent: NavigatorAgent, voice: Optional[VoiceIO]) -> int:
    goal = await read_goal(agent, args.goal, voice)

    if args.plan_only:
        state = await agent.plan(goal)
        for action in state.actions:
            print(f"{action.order}. {action.label}")
        if voice is not None:
            await voice.speak_actions(state.actions)
        return 0

    if voice is not None:
        await voice.speak_prompt("analyze")

    state = await agent.run(goal, args.url)

    if state.phase == AgentPhase.ERROR:
        logger.error(f"❌ {state.error}")
        if voice is not None:
            await voice.speak_prompt("error")
        return 1

    for path in write_artifacts(state.artifacts, Path(args.out)):
        logger.info(f"✓ 产物已写入 {path}")
    print(RunLog(state.logs).format_history(last_n=len(state.logs)))

    if voice is not None:
        await voice.speak_prompt("complete")

    result = agent.last_result
    return 0 if result is None or result.success else 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
