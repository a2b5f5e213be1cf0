"""
应用配置（pydantic-settings v2）

环境变量大小写不敏感，嵌套字段用 ``__`` 分隔，例如 ``DATABASE__URL``、
``DATABASE__TRANSACTION_TIMEOUT``。支付网关相关配置见 core.settings。
"""
import json
from typing import Any, Union

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# 前端部署域名与本地开发端口
DEFAULT_CORS_ORIGINS = [
    "https://fundraiser-donations.web.app",
    "https://fundraiser-donations.firebaseapp.com",
    "http://localhost:5173",
    "http://localhost:3000",
]


class DatabaseSettings(BaseModel):
    # postgresql:// 与 sqlite:// 会自动换成 asyncpg / aiosqlite 驱动
    url: str = "sqlite+aiosqlite:///./payments.db"
    echo: bool = False
    # 单次确认写入的上限（秒）；超时按未生效处理，调用方可整体重试
    transaction_timeout: float = Field(default=10.0, gt=0)


class Settings(BaseSettings):
    PROJECT_NAME: str = "Donation Payment Relay"
    VERSION: str = "1.0.0"
    DEBUG: bool = True
    ENVIRONMENT: str = "development"

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)

    # 含 str 使逗号分隔的环境变量不被当作 JSON 解析
    CORS_ORIGINS: Union[list[str], str] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))

    # 请求体日志（可用 X-Log-Body 头逐请求覆盖）
    LOG_REQUEST_BODY_ENABLE_BY_DEFAULT: bool = True
    LOG_REQUEST_BODY_MAX_BYTES: int = 2048

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _split_origins(cls, v: Any) -> Any:
        """接受 JSON 数组或逗号分隔字符串"""
        if not isinstance(v, str):
            return v
        raw = v.strip()
        if raw.startswith("["):
            return json.loads(raw)
        return [item.strip() for item in raw.split(",") if item.strip()]


settings = Settings()
