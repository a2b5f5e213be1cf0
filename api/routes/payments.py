"""
Payments API routes.

Exposes order creation, the gateway webhook and the checkout confirmation
fallback via the application service. Keep this thin: no gateway details here.

Wire formats follow the checkout frontend: JSON ``{"success": ...}`` bodies,
except the webhook, which answers in plain text because the gateway only
looks at the status code (any non-2xx is retried).
"""
from __future__ import annotations

import json

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError

from api.dependencies import get_payment_service, get_verification_service
from application.dtos.payments import (
    ConfirmPaymentRequest,
    CreateOrderRequest,
    VerifySignatureRequest,
)
from application.services.payment_service import PaymentService
from core.logging_config import get_logger
from domain.common.exceptions import (
    AuthenticationException,
    BusinessException,
    DomainValidationException,
)


router = APIRouter(prefix="/payment", tags=["Payments"])
logger = get_logger(__name__)


@router.post("/create-order", summary="Create gateway order")
async def create_order(payload: CreateOrderRequest, service: PaymentService = Depends(get_payment_service)):
    order = await service.create_order(payload)
    return order.model_dump(by_alias=True)


@router.post("/webhook", summary="Gateway webhook", response_class=PlainTextResponse)
async def payment_webhook(request: Request, service: PaymentService = Depends(get_verification_service)):
    raw_body = await request.body()
    try:
        outcome = await service.handle_webhook(request.headers, raw_body)
    except (AuthenticationException, DomainValidationException) as exc:
        logger.warning("payment_webhook_rejected", **exc.log_fields())
        return PlainTextResponse(exc.message, status_code=400)
    except BusinessException as exc:
        logger.error("payment_webhook_failed", **exc.log_fields())
        return PlainTextResponse("Webhook processing failed", status_code=500)
    except Exception:
        logger.error("payment_webhook_failed", error_type="unhandled", exc_info=True)
        return PlainTextResponse("Webhook processing failed", status_code=500)

    logger.info(
        "payment_webhook_acknowledged",
        status=outcome.status,
        webhook_event=outcome.event,
        payment_id=outcome.payment_id,
        result_id=outcome.result_id,
    )
    return PlainTextResponse(outcome.status.upper().replace("_", " "), status_code=200)


@router.post("/confirm", summary="Confirm donation from checkout callback")
async def confirm_payment(payload: ConfirmPaymentRequest, service: PaymentService = Depends(get_payment_service)):
    result = await service.confirm_payment(payload)
    return result.model_dump(by_alias=True)


@router.post("/verify-signature", summary="Check a checkout signature")
async def verify_signature(request: Request, service: PaymentService = Depends(get_verification_service)):
    # 任何无法解析的输入都只回答 {"valid": false}，不走统一错误信封
    raw_body = await request.body()
    try:
        payload = VerifySignatureRequest.model_validate(json.loads(raw_body or b"null"))
        valid = service.verify_signature(payload)
    except (ValueError, ValidationError, DomainValidationException):
        logger.info("checkout_signature_request_invalid", body_bytes=len(raw_body))
        return JSONResponse(status_code=400, content={"valid": False})
    return {"valid": valid}

