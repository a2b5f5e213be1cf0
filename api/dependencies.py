"""
API依赖项 - 支付服务的组装（composition root）

测试通过 ``app.dependency_overrides`` 替换网关、配置与 Unit of Work 工厂。
"""
from functools import partial
from typing import AsyncGenerator, Callable, Optional

from fastapi import Depends

from application.ports.payment_gateway import PaymentGateway
from application.services.confirmation_service import ConfirmationApplier
from application.services.payment_service import PaymentService
from core.config import settings
from core.settings import PaymentSettings, payment_settings
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.payment.signature import SignatureVerifier
from infrastructure.database import AsyncSessionLocal
from infrastructure.external.payments import get_payment_gateway
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


def get_payment_settings() -> PaymentSettings:
    return payment_settings


def get_uow_factory() -> Callable[..., AbstractUnitOfWork]:
    return partial(SQLAlchemyUnitOfWork, AsyncSessionLocal)


def get_signature_verifier(cfg: PaymentSettings = Depends(get_payment_settings)) -> SignatureVerifier:
    return SignatureVerifier(
        key_secret=cfg.razorpay.key_secret,
        webhook_secret=cfg.razorpay.webhook_secret,
    )


def get_confirmation_applier(
    uow_factory: Callable[..., AbstractUnitOfWork] = Depends(get_uow_factory),
) -> ConfirmationApplier:
    return ConfirmationApplier(uow_factory, transaction_timeout=settings.database.transaction_timeout)


async def get_gateway(
    cfg: PaymentSettings = Depends(get_payment_settings),
) -> AsyncGenerator[PaymentGateway, None]:
    gateway = get_payment_gateway(config=cfg)
    try:
        yield gateway
    finally:
        await gateway.aclose()


def _build_service(
    cfg: PaymentSettings,
    verifier: SignatureVerifier,
    applier: ConfirmationApplier,
    gateway: Optional[PaymentGateway] = None,
) -> PaymentService:
    return PaymentService(verifier=verifier, applier=applier, gateway=gateway, currency=cfg.currency)


async def get_payment_service(
    cfg: PaymentSettings = Depends(get_payment_settings),
    verifier: SignatureVerifier = Depends(get_signature_verifier),
    applier: ConfirmationApplier = Depends(get_confirmation_applier),
    gateway: PaymentGateway = Depends(get_gateway),
) -> PaymentService:
    """带网关的支付服务（下单/前端确认）"""
    return _build_service(cfg, verifier, applier, gateway)


async def get_verification_service(
    cfg: PaymentSettings = Depends(get_payment_settings),
    verifier: SignatureVerifier = Depends(get_signature_verifier),
    applier: ConfirmationApplier = Depends(get_confirmation_applier),
) -> PaymentService:
    """webhook 与验签接口只需验签与落库，不构造网关客户端"""
    return _build_service(cfg, verifier, applier)
