# backend/app/errors.py
"""
Translation of scheduling rejections into HTTP errors.

Rejections are business outcomes; the detail always carries the kind and
a message, plus whatever recovery data the caller can act on
(suggested times, hours remaining).
"""

from typing import Any, NoReturn

from fastapi import HTTPException, status

from .services.scheduling import Rejected, RejectionKind, minutes_to_time_str

STATUS_BY_KIND = {
    RejectionKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    RejectionKind.NO_PROFESSIONAL_AVAILABLE: status.HTTP_404_NOT_FOUND,
    RejectionKind.SCHEDULING_CONFLICT: status.HTTP_409_CONFLICT,
    RejectionKind.TERMINAL_STATE_VIOLATION: status.HTTP_400_BAD_REQUEST,
    RejectionKind.POLICY_VIOLATION: status.HTTP_400_BAD_REQUEST,
}


def rejection_detail(rejection: Rejected, **extra: Any) -> dict:
    detail: dict[str, Any] = {
        "kind": rejection.kind.value,
        "message": rejection.message,
    }
    if rejection.kind == RejectionKind.SCHEDULING_CONFLICT:
        detail["suggestions"] = [minutes_to_time_str(m) for m in rejection.suggested_slots]
    if rejection.hours_remaining is not None:
        detail["hours_remaining"] = round(rejection.hours_remaining, 2)
    detail.update(extra)
    return detail


def raise_for_rejection(rejection: Rejected, **extra: Any) -> NoReturn:
    raise HTTPException(
        status_code=STATUS_BY_KIND[rejection.kind],
        detail=rejection_detail(rejection, **extra),
    )
