"""记忆模块：只追加的执行日志"""

from typing import Iterable, List, Optional

from .models import LogEntry, LogStatus


class RunLog:
    """执行日志：条目按追加顺序保存，追加后不再修改或删除"""

    def __init__(self, entries: Iterable[LogEntry] = ()):
        self._entries: List[LogEntry] = list(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    @property
    def entries(self) -> List[LogEntry]:
        """返回副本，外部修改不会影响日志本身"""
        return list(self._entries)

    def record(self, action: str, status: LogStatus, details: Optional[str] = None) -> LogEntry:
        """追加一条记录"""
        entry = LogEntry.now(action, status, details)
        self._entries.append(entry)
        return entry

    def info(self, action: str, details: Optional[str] = None) -> LogEntry:
        return self.record(action, LogStatus.INFO, details)

    def success(self, action: str, details: Optional[str] = None) -> LogEntry:
        return self.record(action, LogStatus.SUCCESS, details)

    def error(self, action: str, details: Optional[str] = None) -> LogEntry:
        return self.record(action, LogStatus.ERROR, details)

    def format_history(self, last_n: int = 5) -> str:
        """格式化最近的记录"""
        if not self._entries:
            return "(无历史)"

        lines = []
        for entry in self._entries[-last_n:]:
            details_str = f" ({entry.details})" if entry.details else ""
            lines.append(f"{entry.timestamp} {entry.action}{details_str} → {entry.status.value}")

        return "\n".join(lines)
