"""
错误响应信封

支付前端只读取 ``success`` 与 ``message``；``code``/``error`` 供排障与日志关联。
"""
from typing import Any, Optional

from pydantic import BaseModel

from shared.codes import BusinessCode


class ErrorInfo(BaseModel):
    type: str
    field: Optional[str] = None
    details: Optional[dict[str, Any]] = None
    request_id: Optional[str] = None


class ErrorResponse(BaseModel):
    success: bool = False
    code: int
    message: str
    error: ErrorInfo


def error_response(
    code: int,
    message: str,
    error_type: str = "BusinessError",
    details: Optional[dict] = None,
    field: Optional[str] = None,
    request_id: Optional[str] = None,
) -> dict:
    """渲染为可直接交给 JSONResponse 的字典（省略空字段）"""
    body = ErrorResponse(
        code=int(code or BusinessCode.SYSTEM_ERROR),
        message=message,
        error=ErrorInfo(type=error_type, field=field, details=details, request_id=request_id),
    )
    return body.model_dump(mode="json", exclude_none=True)
