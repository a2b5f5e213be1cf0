"""领域层异常：按调用方应如何反应分类，而不是按出错位置分类。

- DomainValidationException: 输入有误，不修改任何状态
- AuthenticationException: 签名不匹配或密钥缺失，一律拒绝
- ResourceNotFoundException: 引用的活动/预订不存在
- TransientInfraException: 存储或网关暂时不可用，整个调用可安全重试

code 到 HTTP 状态的映射在 core.exceptions，领域层不依赖 core。
"""
from __future__ import annotations

from typing import Any, Optional

from shared.codes import BusinessCode


class BusinessException(Exception):
    retryable = False

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field

    def log_fields(self) -> dict[str, Any]:
        """结构化日志字段"""
        fields: dict[str, Any] = {"code": int(self.code), "error_type": self.error_type, "reason": self.message}
        if self.field:
            fields["field"] = self.field
        if self.retryable:
            fields["retryable"] = True
        return fields


class DomainValidationException(BusinessException):
    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict | None = None,
        code: int = BusinessCode.PARAM_VALIDATION_ERROR,
        error_type: str = "ValidationError",
    ):
        super().__init__(code, message, error_type, details, field)


class AuthenticationException(BusinessException):
    def __init__(
        self,
        message: str = "Signature verification failed",
        *,
        code: int = BusinessCode.UNAUTHORIZED,
        details: dict | None = None,
    ):
        super().__init__(code, message, "AuthenticationError", details)


class ResourceNotFoundException(BusinessException):
    def __init__(self, message: str, *, code: int = BusinessCode.NOT_FOUND, details: dict | None = None):
        super().__init__(code, message, "NotFound", details)


class TransientInfraException(BusinessException):
    retryable = True

    def __init__(
        self,
        message: str,
        *,
        code: int = BusinessCode.SERVICE_UNAVAILABLE,
        details: dict | None = None,
    ):
        super().__init__(code, message, "TransientInfraError", details)
