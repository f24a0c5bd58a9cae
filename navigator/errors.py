"""异常定义"""


class NavigatorError(Exception):
    """所有 navigator 异常的基类"""


class AutomationError(NavigatorError):
    """浏览器驱动操作失败（点击、填充、等待等）"""


class ElementNotFoundError(NavigatorError):
    """所有 locator 策略都失败，且没有可用的边界框"""

    def __init__(self, message: str = "element not found"):
        super().__init__(message)


class OracleError(NavigatorError):
    """视觉模型调用或解析失败，只在 planner 内部使用"""


class PlanError(NavigatorError):
    """计划本身不合法，例如 order 重复"""


class SessionBusyError(NavigatorError):
    """已有任务在运行时再次提交"""


class RunCancelled(NavigatorError):
    """运行被 reset 中断"""
