"""执行器：按顺序逐步执行计划中的动作

每一步的状态变化都会立即通过 on_update 回调通知观察者，日志在每步结束后追加。
同一时间只执行一步，上一步进入终态之前不会开始下一步。
"""

import asyncio
import time
from typing import Callable, List, Optional, Sequence

from .config import ErrorPolicy
from .controller import Controller
from .errors import AutomationError, ElementNotFoundError, PlanError, RunCancelled
from .locator import LocatorResolver, click_point
from .logger import logger
from .memory import RunLog
from .models import Action, ActionKind, ActionStatus, ExecutionResult, LogEntry

UpdateCallback = Callable[[List[Action], List[LogEntry], Optional[int]], None]


class CancelToken:
    """reset 时置位，执行器在每步之间以及每个 await 之后检查"""

    def __init__(self):
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise RunCancelled("run cancelled")


def order_plan(actions: Sequence[Action]) -> List[Action]:
    """按 order 升序排列，order 重复时拒绝执行"""
    plan = sorted(actions, key=lambda a: a.order)
    seen = set()
    for action in plan:
        if action.order in seen:
            raise PlanError(f"duplicate action order {action.order}")
        seen.add(action.order)
    return plan


class StepExecutor:
    """执行器：独占 Controller，顺序执行每一步"""

    def __init__(
        self,
        controller: Controller,
        policy: ErrorPolicy = ErrorPolicy.CONTINUE,
        failure_delay_ms: int = 500,
        on_update: Optional[UpdateCallback] = None,
    ):
        self.controller = controller
        self.resolver = LocatorResolver(controller)
        self.policy = policy
        self.failure_delay_ms = failure_delay_ms
        self.on_update = on_update

    async def run(self, actions: Sequence[Action], cancel_token: Optional[CancelToken] = None) -> ExecutionResult:
        """
        执行整个计划。

        单步失败（找不到元素、驱动报错）只会让该步变为 failed，按 policy 决定是否继续；
        其他异常会把当前步标记为 failed 后继续向上抛出。
        """
        token = cancel_token or CancelToken()
        plan = order_plan(actions)
        log = RunLog()

        if not plan:
            return ExecutionResult(success=True, actions=[], logs=[])

        token.raise_if_cancelled()
        log.info("Starting execution", f"{len(plan)} steps")
        self._publish(plan, log, 0)

        success = True
        for index in range(len(plan)):
            token.raise_if_cancelled()
            logger.info(f"Step {index + 1}/{len(plan)}: {plan[index].label}")
            if await self._run_step(plan, index, log, token):
                continue
            success = False
            if self.policy == ErrorPolicy.ABORT:
                log.info("Execution aborted", f"stopped after step {index + 1}")
                logger.warning(f"⚠ 第 {index + 1} 步失败，终止执行")
                break

        done = sum(1 for a in plan if a.status == ActionStatus.COMPLETED)
        if success:
            log.success("Execution complete", f"{done}/{len(plan)} steps completed")
        else:
            log.error("Execution complete", f"{done}/{len(plan)} steps completed")
        self._publish(plan, log, None)

        screenshot = None
        try:
            screenshot = await self.controller.screenshot()
        except AutomationError as e:
            logger.warning(f"⚠ 最终截图失败: {e}")

        return ExecutionResult(success=success, actions=plan, logs=log.entries, screenshot=screenshot)

    async def _run_step(self, plan: List[Action], index: int, log: RunLog, token: CancelToken) -> bool:
        started = time.monotonic()
        self._update(plan, index, log, plan[index].transition(ActionStatus.ANALYZING))

        try:
            locator = await self._resolve(plan[index])
            token.raise_if_cancelled()
            self._update(plan, index, log, plan[index].transition(ActionStatus.EXECUTING, locator=locator))
            await self._perform(plan[index], locator)
            token.raise_if_cancelled()
        except (ElementNotFoundError, AutomationError) as e:
            self._fail(plan, index, log, str(e))
            logger.error(f"❌ {plan[index].label}: {e}")
            await asyncio.sleep(self.failure_delay_ms / 1000)
            token.raise_if_cancelled()
            return False
        except (RunCancelled, asyncio.CancelledError):
            self._fail(plan, index, log, "cancelled")
            raise
        except Exception as e:
            self._fail(plan, index, log, f"unexpected error: {e}")
            raise

        elapsed = int((time.monotonic() - started) * 1000)
        log.success(plan[index].label, f"Completed in {elapsed}ms")
        self._update(plan, index, log, plan[index].transition(ActionStatus.COMPLETED, reason="Action completed successfully"))
        return True

    async def _resolve(self, action: Action) -> Optional[str]:
        if action.kind not in (ActionKind.CLICK, ActionKind.TYPE, ActionKind.SELECT):
            return None
        return await self.resolver.resolve(action.target)

    async def _perform(self, action: Action, locator: Optional[str]) -> None:
        kind = action.kind

        if kind == ActionKind.CLICK:
            if locator:
                await self.controller.click(locator)
            else:
                await self._click_target(action)
        elif kind == ActionKind.TYPE:
            text = action.value or ""
            if locator:
                await self.controller.fill(locator, text)
            else:
                await self._click_target(action)
                await self.controller.type_text(text)
        elif kind == ActionKind.SELECT:
            if not locator:
                raise ElementNotFoundError()
            await self.controller.select(locator, action.value or "")
        elif kind == ActionKind.WAIT:
            await self.controller.wait(action.wait_ms)
        elif kind == ActionKind.NAVIGATE:
            if not action.value:
                raise AutomationError("navigate requires a URL")
            await self.controller.navigate(action.value)
        elif kind == ActionKind.SCROLL:
            await self.controller.scroll(0, action.scroll_px)
        else:
            raise AutomationError(f"unsupported action kind: {kind}")

    async def _click_target(self, action: Action) -> None:
        """退回到按边界框中心坐标点击"""
        if action.target is None or action.target.bbox is None:
            raise ElementNotFoundError()
        viewport = await self.controller.viewport()
        x, y = click_point(action.target, viewport)
        await self.controller.click_at(x, y)

    def _fail(self, plan: List[Action], index: int, log: RunLog, reason: str) -> None:
        log.error(plan[index].label, reason)
        self._update(plan, index, log, plan[index].transition(ActionStatus.FAILED, reason=reason))

    def _update(self, plan: List[Action], index: int, log: RunLog, action: Action) -> None:
        plan[index] = action
        self._publish(plan, log, index)

    def _publish(self, plan: List[Action], log: RunLog, index: Optional[int]) -> None:
        if self.on_update is not None:
            self.on_update(list(plan), log.entries, index)
