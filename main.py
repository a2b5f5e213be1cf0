"""
捐赠与活动预订支付服务入口
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from contextlib import asynccontextmanager

from api.routes import payments as payments_routes
from api.middleware import RequestIDMiddleware, LoggingMiddleware
from core.config import settings
from core.exceptions import register_exception_handlers
from core.logging_config import get_logger, configure_logging
from core.settings import payment_settings
from infrastructure.database import create_tables, engine


# 初始化日志：在入口处显式配置，避免模块导入时的副作用
configure_logging()
logger = get_logger(__name__)


def _log_payment_configuration() -> None:
    """启动时记录网关配置是否齐全（只记录是否存在，不输出密钥）"""
    rzp = payment_settings.razorpay
    logger.info(
        "payment_configuration",
        provider=payment_settings.default_provider,
        currency=payment_settings.currency,
        orders_enabled=rzp.orders_enabled,
        webhook_secret_configured=bool(rzp.webhook_secret),
    )
    if not rzp.webhook_secret:
        logger.warning("webhook_secret_missing", message="All webhooks will be rejected until RAZORPAY__WEBHOOK_SECRET is set")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 仅开发环境自动建表，其他环境需先执行 alembic upgrade head
    if settings.DEBUG:
        await create_tables()
        logger.info("payment_tables_ready", environment=settings.ENVIRONMENT)
    else:
        logger.info("payment_tables_managed_by_alembic", environment=settings.ENVIRONMENT)
    _log_payment_configuration()

    yield

    await engine.dispose()
    logger.info("payment_service_stopped")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    description="Payment order and confirmation relay for donations and event bookings",
)

# 添加中间件（注意顺序：从下往上执行）
# 1. 日志中间件（依赖request_id）
app.add_middleware(LoggingMiddleware)

# 2. Request ID中间件（最先执行，为后续中间件提供request_id）
app.add_middleware(RequestIDMiddleware)

# 3. CORS中间件
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# 注册全局异常处理器
register_exception_handlers(app)


# 注册路由
app.include_router(payments_routes.router, prefix="/api")


# 根路径
@app.get("/", tags=["Root"], response_class=PlainTextResponse)
async def root():
    return f"{settings.PROJECT_NAME} running"


@app.get("/health", tags=["Health"])
async def health():
    return {"ok": True}


if __name__ == "__main__":
    import uvicorn
    # 日志由 configure_logging 接管，不使用 uvicorn 自带的 access log 格式
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG, access_log=False)
