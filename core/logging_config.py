"""
Structlog 日志配置

structlog 与标准库 logging（uvicorn / sqlalchemy / httpx）共用一条处理链，
由 ProcessorFormatter 统一渲染：DEBUG 下输出可读文本，其余环境输出 JSON 行。
"""
import json
import logging
from typing import Any, Optional

import structlog
from structlog.contextvars import merge_contextvars
from structlog.stdlib import ProcessorFormatter

from core.config import settings


# 签名与密钥永不落日志
REDACTED_KEYS = frozenset({"signature", "key_secret", "webhook_secret", "authorization"})

# 第三方库的默认级别；网关请求由 httpx 记录到 INFO 太吵
_LIBRARY_LEVELS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "aiosqlite": logging.WARNING,
}


def redact_secrets(_logger: Any, _method: str, event_dict: dict) -> dict:
    for key, value in event_dict.items():
        if value and key.lower() in REDACTED_KEYS:
            event_dict[key] = "***"
    return event_dict


def _json_dumps(obj: Any, default: Any = None, **kwargs: Any) -> str:
    # structlog 会透传 default/sort_keys 等参数
    return json.dumps(obj, ensure_ascii=False, default=default or str, **kwargs)


def _renderer(json_logs: bool) -> Any:
    if json_logs:
        return structlog.processors.JSONRenderer(serializer=_json_dumps)
    return structlog.dev.ConsoleRenderer(colors=False)


def _pre_chain() -> list:
    return [
        merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_secrets,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def configure_logging(level: Optional[int] = None, *, json_logs: Optional[bool] = None) -> None:
    """配置 structlog 并把根 logger 接到同一渲染链（入口处调用一次）。"""
    if level is None:
        level = logging.DEBUG if settings.DEBUG else logging.INFO
    if json_logs is None:
        json_logs = not settings.DEBUG

    pre_chain = _pre_chain()
    structlog.configure(
        processors=[*pre_chain, ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[ProcessorFormatter.remove_processors_meta, _renderer(json_logs)],
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    for name, lib_level in _LIBRARY_LEVELS.items():
        logging.getLogger(name).setLevel(lib_level)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.database.echo else logging.WARNING
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
