"""
业务码到 HTTP 状态的映射与全局异常处理器

路由只抛 BusinessException 子类，这里统一渲染为 ``{"success": false, "message": ...}``。
webhook 路由自行回复纯文本，不经过这里。
"""
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status as http_status
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.logging_config import get_logger
from core.response import error_response
from domain.common.exceptions import BusinessException
from shared.codes import BusinessCode
from shared.codes.payment_codes import PaymentCode


logger = get_logger(__name__)

# 未列出的业务码按 400 处理
CODE_TO_HTTP_STATUS = {
    BusinessCode.PARAM_VALIDATION_ERROR: http_status.HTTP_400_BAD_REQUEST,
    PaymentCode.INVALID_PAYLOAD: http_status.HTTP_400_BAD_REQUEST,
    PaymentCode.PAYMENT_MISMATCH: http_status.HTTP_400_BAD_REQUEST,
    PaymentCode.UNROUTABLE_EVENT: http_status.HTTP_400_BAD_REQUEST,
    BusinessCode.UNAUTHORIZED: http_status.HTTP_401_UNAUTHORIZED,
    PaymentCode.SIGNATURE_ERROR: http_status.HTTP_401_UNAUTHORIZED,
    BusinessCode.FORBIDDEN: http_status.HTTP_403_FORBIDDEN,
    BusinessCode.NOT_FOUND: http_status.HTTP_404_NOT_FOUND,
    PaymentCode.CAMPAIGN_NOT_FOUND: http_status.HTTP_404_NOT_FOUND,
    PaymentCode.BOOKING_NOT_FOUND: http_status.HTTP_404_NOT_FOUND,
    PaymentCode.EVENT_NOT_FOUND: http_status.HTTP_404_NOT_FOUND,
    BusinessCode.SYSTEM_ERROR: http_status.HTTP_500_INTERNAL_SERVER_ERROR,
    PaymentCode.PROVIDER_ERROR: http_status.HTTP_502_BAD_GATEWAY,
    BusinessCode.SERVICE_UNAVAILABLE: http_status.HTTP_503_SERVICE_UNAVAILABLE,
    PaymentCode.PROVIDER_RECOVERABLE: http_status.HTTP_503_SERVICE_UNAVAILABLE,
    PaymentCode.STORE_UNAVAILABLE: http_status.HTTP_503_SERVICE_UNAVAILABLE,
}

_HTTP_STATUS_TO_CODE = {
    401: BusinessCode.UNAUTHORIZED,
    403: BusinessCode.FORBIDDEN,
    404: BusinessCode.NOT_FOUND,
    503: BusinessCode.SERVICE_UNAVAILABLE,
}


def business_code_to_http_status(code: int) -> int:
    return CODE_TO_HTTP_STATUS.get(code, http_status.HTTP_400_BAD_REQUEST)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


def _validation_message(error: dict) -> str:
    # pydantic 给 ValueError 的消息加了 "Value error, " 前缀
    return str(error.get("msg") or "Invalid request").removeprefix("Value error, ")


def register_exception_handlers(app: FastAPI) -> None:
    """注册全局异常处理器"""

    @app.exception_handler(BusinessException)
    async def business_exception_handler(request: Request, exc: BusinessException):
        request_id = _request_id(request)
        status_code = business_code_to_http_status(exc.code)
        log = logger.error if status_code >= 500 else logger.warning
        log("business_exception", status_code=status_code, **exc.log_fields())
        return JSONResponse(
            status_code=status_code,
            content=error_response(
                exc.code,
                exc.message,
                error_type=exc.error_type,
                details=exc.details,
                field=exc.field,
                request_id=request_id,
            ),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        # loc[0] 是 body/query
        field = ".".join(str(part) for part in first.get("loc", ())[1:]) or None
        return JSONResponse(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            content=error_response(
                BusinessCode.PARAM_VALIDATION_ERROR,
                _validation_message(first),
                error_type="ValidationError",
                details={"errors": [{"loc": list(e.get("loc", ())), "msg": _validation_message(e)} for e in errors]},
                field=field,
                request_id=_request_id(request),
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(
                _HTTP_STATUS_TO_CODE.get(exc.status_code, BusinessCode.SYSTEM_ERROR),
                str(exc.detail),
                error_type="HTTPError",
                request_id=_request_id(request),
            ),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        request_id = _request_id(request)
        logger.error("unhandled_exception", error=str(exc), exc_info=exc)
        details = {"exception": repr(exc)} if app.debug else None
        return JSONResponse(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_response(
                BusinessCode.SYSTEM_ERROR,
                "Internal server error",
                error_type="SystemError",
                details=details,
                request_id=request_id,
            ),
        )
