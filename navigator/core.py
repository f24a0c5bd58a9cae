"""Vision-to-Workflow Navigator 核心类

持有 AgentState 聚合，每次状态变化都生成新的 AgentState 并通知订阅者。
同一会话同一时间只允许一个任务；reset 会中断正在运行的任务。
"""

import asyncio
from dataclasses import replace
from typing import Callable, List, Optional

from .artifacts import generate_artifacts, screenshot_artifact
from .config import Settings
from .controller import Controller, open_controller
from .errors import AutomationError, RunCancelled, SessionBusyError
from .executor import CancelToken, StepExecutor
from .logger import logger
from .models import (
    Action,
    ActionStatus,
    AgentPhase,
    AgentState,
    Analysis,
    ExecutionResult,
    LogEntry,
    LogStatus,
)
from .planner import Planner

Listener = Callable[[AgentState], None]


class NavigatorAgent:
    """目标 → 计划 → 执行 → 产物"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        planner: Optional[Planner] = None,
        controller_factory=open_controller,
    ):
        self.settings = settings or Settings.from_env()
        self.planner = planner or Planner(self.settings)
        self.controller_factory = controller_factory
        self.state = AgentState()
        self.analysis: Optional[Analysis] = None
        self.last_result: Optional[ExecutionResult] = None
        self._listeners: List[Listener] = []
        self._lock = asyncio.Lock()
        self._generation = 0
        self._token = CancelToken()
        self._task: Optional[asyncio.Task] = None
        self._start_url = self.settings.start_url

    # ------------------------------------------------------------------
    # 状态与订阅
    # ------------------------------------------------------------------

    @property
    def busy(self) -> bool:
        return self._lock.locked() or (self._task is not None and not self._task.done())

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """注册状态监听，返回取消订阅的函数"""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _replace(self, generation: int, **changes) -> None:
        # reset 之后旧任务的更新一律丢弃
        if generation != self._generation:
            return
        self.state = replace(self.state, **changes)
        for listener in list(self._listeners):
            listener(self.state)

    def _log(self, generation: int, action: str, status: LogStatus, details: Optional[str] = None) -> None:
        self._replace(generation, logs=[*self.state.logs, LogEntry.now(action, status, details)])

    # ------------------------------------------------------------------
    # 对外操作
    # ------------------------------------------------------------------

    async def listen(self, voice) -> Optional[str]:
        """语音输入一次目标，失败或不支持时返回 None"""
        transcript = await self._guarded(self._listen, voice)
        return transcript if isinstance(transcript, str) else None

    async def plan(self, goal: str, screenshot: Optional[bytes] = None) -> AgentState:
        return await self._guarded(self._plan, goal, screenshot)

    async def execute(self, controller: Optional[Controller] = None) -> AgentState:
        """执行当前计划；未提供 controller 时自行启动浏览器"""
        if controller is not None:
            return await self._guarded(self._execute, controller)
        return await self._guarded(self._execute_owned)

    async def run(self, goal: str, start_url: Optional[str] = None) -> AgentState:
        """完整流程：打开页面、截图、规划、执行、生成产物"""
        return await self._guarded(self._run, goal, start_url)

    def start(self, goal: str, start_url: Optional[str] = None) -> asyncio.Task:
        """在后台运行 run()，便于 reset 中断"""
        if self.busy:
            raise SessionBusyError("a goal is already in progress")
        # 创建时就登记 task 和代数，任务开始前调用 reset 也能取消它
        task = asyncio.ensure_future(self._guarded(self._run, goal, start_url, generation=self._generation))
        self._task = task
        return task

    def reset(self) -> None:
        """中断正在运行的任务并恢复到初始状态"""
        self._generation += 1
        self._token.cancel()
        task = self._task
        if task is not None and not task.done():
            task.cancel()
        self._task = None
        self.analysis = None
        self.last_result = None
        self.state = AgentState()
        logger.info("↺ 会话已重置")
        for listener in list(self._listeners):
            listener(self.state)

    # ------------------------------------------------------------------
    # 内部实现
    # ------------------------------------------------------------------

    async def _guarded(self, func, *args, generation: Optional[int] = None):
        current = asyncio.current_task()
        pending = self._task is not None and not self._task.done() and self._task is not current
        if self._lock.locked() or pending:
            raise SessionBusyError("a goal is already in progress")

        async with self._lock:
            if generation is None:
                generation = self._generation
            elif generation != self._generation:
                logger.info("运行已取消：开始前会话已重置")
                return self.state

            self._token = token = CancelToken()
            self._task = current
            try:
                return await func(generation, token, *args)
            except RunCancelled:
                logger.info("运行已取消")
                return self.state
            except Exception as e:
                logger.exception(f"❌ 运行失败: {e}")
                self._fail(generation, e)
                return self.state
            finally:
                if generation == self._generation:
                    self._task = None

    def _fail(self, generation: int, error: Exception) -> None:
        """致命错误：进入 error 阶段，不留下 executing 中的动作"""
        message = f"{type(error).__name__}: {error}"
        actions = [
            a.transition(ActionStatus.FAILED, reason=message) if a.status in (
                ActionStatus.ANALYZING, ActionStatus.READY, ActionStatus.EXECUTING
            ) else a
            for a in self.state.actions
        ]
        self._replace(generation, phase=AgentPhase.ERROR, error=message, actions=actions, current_step=None)
        self._log(generation, "Run failed", LogStatus.ERROR, message)

    async def _listen(self, generation: int, token: CancelToken, voice) -> Optional[str]:
        self._replace(generation, phase=AgentPhase.LISTENING)
        transcript = await voice.listen()
        token.raise_if_cancelled()
        self._replace(generation, phase=AgentPhase.IDLE)
        return transcript

    async def _plan(self, generation: int, token: CancelToken, goal: str, screenshot: Optional[bytes]) -> AgentState:
        self._replace(
            generation,
            phase=AgentPhase.ANALYZING,
            goal=goal,
            actions=[],
            logs=[LogEntry.now("Goal received", LogStatus.INFO, goal)],
            artifacts=[],
            current_step=None,
            error=None,
        )
        self._log(generation, "Analyzing screen", LogStatus.INFO, "Identifying interactive elements...")

        analysis = await self.planner.analyze(screenshot, goal)
        token.raise_if_cancelled()

        self.analysis = analysis
        self._replace(generation, phase=AgentPhase.PLANNING, actions=list(analysis.actions))
        self._log(generation, "Plan generated", LogStatus.SUCCESS, f"{len(analysis.actions)} actions proposed")
        logger.info(f"✓ 生成计划（{analysis.source}）：{len(analysis.actions)} 个动作")
        for action in analysis.actions:
            logger.info(f"  {action.order}. {action.label}")
        return self.state

    async def _execute(self, generation: int, token: CancelToken, controller: Controller) -> AgentState:
        base_logs = list(self.state.logs)
        actions: List[Action] = list(self.state.actions)

        self._replace(generation, phase=AgentPhase.EXECUTING, current_step=0 if actions else None)

        def on_update(plan: List[Action], entries: List[LogEntry], index: Optional[int]) -> None:
            self._replace(generation, actions=plan, logs=base_logs + entries, current_step=index)

        executor = StepExecutor(
            controller,
            policy=self.settings.error_policy,
            failure_delay_ms=self.settings.failure_delay_ms,
            on_update=on_update,
        )
        result = await executor.run(actions, token)
        token.raise_if_cancelled()

        logs = base_logs + result.logs
        artifacts = generate_artifacts(self.state.goal, result.actions, logs, self._start_url)
        if result.screenshot:
            artifacts.append(screenshot_artifact(result.screenshot))

        self.last_result = result
        self._replace(
            generation,
            phase=AgentPhase.COMPLETED,
            actions=result.actions,
            logs=logs,
            artifacts=artifacts,
            current_step=None,
        )
        self._log(generation, "Artifacts generated", LogStatus.SUCCESS, f"{len(artifacts)} artifacts generated")
        status = "✓✓✓ 任务完成 ✓✓✓" if result.success else "⚠ 任务完成，但有步骤失败"
        logger.info(status)
        return self.state

    async def _execute_owned(self, generation: int, token: CancelToken) -> AgentState:
        async with self.controller_factory(self.settings) as controller:
            await controller.navigate(self._start_url)
            token.raise_if_cancelled()
            return await self._execute(generation, token, controller)

    async def _run(self, generation: int, token: CancelToken, goal: str, start_url: Optional[str]) -> AgentState:
        self._start_url = start_url or self.settings.start_url
        async with self.controller_factory(self.settings) as controller:
            await controller.navigate(self._start_url)
            token.raise_if_cancelled()

            screenshot = None
            try:
                screenshot = await controller.screenshot()
            except AutomationError as e:
                logger.warning(f"⚠ 截图失败，仅根据目标文本规划: {e}")
            token.raise_if_cancelled()

            await self._plan(generation, token, goal, screenshot)
            return await self._execute(generation, token, controller)
