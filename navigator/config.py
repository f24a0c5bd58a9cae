"""全局配置：从环境变量（以及 .env 文件）读取"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from dotenv import load_dotenv

# 加载 .env 文件中的环境变量
load_dotenv()

DEFAULT_MODEL = "gpt-4o"
DEFAULT_START_URL = "https://demo.playwright.dev/todomvc"


class ErrorPolicy(str, Enum):
    """某一步失败后的处理方式"""
    CONTINUE = "continue"
    ABORT = "abort"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    model: str = DEFAULT_MODEL
    start_url: str = DEFAULT_START_URL
    headless: bool = True
    failure_delay_ms: int = 500
    error_policy: ErrorPolicy = ErrorPolicy.CONTINUE
    oracle_timeout: float = 30.0
    log_level: str = "INFO"

    @property
    def has_credentials(self) -> bool:
        return bool(self.openai_api_key)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            openai_api_key=os.environ.get("OPENAI_API_KEY") or None,
            openai_base_url=os.environ.get("OPENAI_BASE_URL") or None,
            model=os.environ.get("OPENAI_MODEL", DEFAULT_MODEL),
            start_url=os.environ.get("NAVIGATOR_START_URL", DEFAULT_START_URL),
            headless=_env_bool("NAVIGATOR_HEADLESS", True),
            failure_delay_ms=int(os.environ.get("NAVIGATOR_FAILURE_DELAY_MS", "500")),
            error_policy=ErrorPolicy(os.environ.get("NAVIGATOR_ERROR_POLICY", "continue").lower()),
            oracle_timeout=float(os.environ.get("NAVIGATOR_ORACLE_TIMEOUT", "30")),
            log_level=os.environ.get("NAVIGATOR_LOG_LEVEL", "INFO").upper(),
        )
