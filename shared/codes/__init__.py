"""
Business codes carried in every error envelope (``code`` field).

Ranges: 1xxxx request problems, 2xxxx business rules, 3xxxx auth,
4xxxx infrastructure. Payment flow codes live in ``payment_codes`` (6xxxx).
"""
from enum import IntEnum


class BusinessCode(IntEnum):
    PARAM_VALIDATION_ERROR = 10003
    BUSINESS_ERROR = 20000
    NOT_FOUND = 20006
    UNAUTHORIZED = 30001
    FORBIDDEN = 30002
    SYSTEM_ERROR = 40000
    SERVICE_UNAVAILABLE = 40003


__all__ = ["BusinessCode"]
