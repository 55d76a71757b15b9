# common/api.py

"""
API ERROR NORMALIZATION

Every domain failure leaves the API in the same envelope:
    {"error": {"code": "...", "message": "..."}}
"""

from __future__ import annotations

from rest_framework.response import Response

from common.exceptions import StorefrontError


def error_response(*, code: str, message: str, http_status: int):
    return Response(
        {"error": {"code": code, "message": message}},
        status=http_status,
    )


def domain_error_response(exc: StorefrontError):
    return error_response(
        code=exc.code,
        message=exc.message,
        http_status=exc.http_status,
    )
