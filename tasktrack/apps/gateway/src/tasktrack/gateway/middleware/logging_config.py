"""structlog 配置模块

dev 模式：pretty print 可读输出
json 模式：结构化 JSON 输出（异常栈渲染为结构化字段）

所有日志附带 app 字段；请求日志由 LoggingMiddleware 负责，
uvicorn access log 与 aiosqlite 调试日志默认压到 WARNING。
"""

import logging
import os

import structlog

APP_NAME = "tasktrack"

_NOISY_LOGGERS = ("uvicorn.access", "aiosqlite")


def _add_app_name(
    logger: object, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    event_dict.setdefault("app", APP_NAME)
    return event_dict


def setup_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """初始化 structlog 配置

    参数未提供时读取环境变量：
    - TASKTRACK_LOG_FORMAT: "json"（生产环境）或 "dev"（默认）
    - TASKTRACK_LOG_LEVEL: 日志级别（默认 INFO）
    """
    log_format = log_format or os.environ.get("TASKTRACK_LOG_FORMAT", "dev")
    log_level = log_level or os.environ.get("TASKTRACK_LOG_LEVEL", "INFO")
    level = getattr(logging, log_level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        _add_app_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    renderer: structlog.types.Processor
    if log_format == "json":
        shared_processors.append(structlog.processors.dict_tracebacks)
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
