import sys

from loguru import logger

LOG_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <7}</level> | {message}"

# 整个项目共用的 logger 配置
logger.remove()
logger.add(sys.stderr, level="INFO", format=LOG_FORMAT)


def setup_logging(level: str = "INFO") -> None:
    """按配置重新设置日志级别"""
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)
