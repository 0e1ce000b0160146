"""Helpers shared by the JSON controllers."""

from __future__ import annotations

import dataclasses
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from functools import wraps
from typing import Any, Optional

from flask import jsonify, request, session

from ..access.context import RequestContext
from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    NotFoundError,
    PaymentGatewayError,
    ValidationError,
)
from .datetime_utils import parse_iso_date

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (PaymentGatewayError, 502),
)


def to_json(value: Any) -> Any:
    """Make dataclasses, Decimals, dates and enums JSON friendly."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_json(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, dict):
        return {k: to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_json(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat(sep=" ", timespec="seconds")
    if isinstance(value, (date, time)):
        return value.isoformat()
    return value


def ok(message: str = "OK", data: Any = None, status: int = 200):
    body = {"success": True, "message": message}
    if data is not None:
        body["data"] = to_json(data)
    return jsonify(body), status


def fail(message: str, status: int = 400):
    return jsonify({"success": False, "message": message}), status


def error_response(exc: DomainError):
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(exc, cls):
            return fail(str(exc), status)
    return fail(str(exc), 400)


def current_context() -> Optional[RequestContext]:
    return RequestContext.from_session(session)


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return fail("Vui lòng đăng nhập để tiếp tục!", 401)
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: Role):
    allowed = {r.value for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return fail("Vui lòng đăng nhập để tiếp tục!", 401)
            if session.get("role") not in allowed:
                return fail("Bạn không có quyền truy cập chức năng này", 403)
            return view(*args, **kwargs)

        return wrapper

    return decorator


def payload() -> dict:
    """JSON body, falling back to form fields."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def date_arg(name: str, default: Optional[date] = None) -> date:
    raw = request.args.get(name) or payload().get(name)
    if not raw:
        if default is None:
            raise ValidationError(f"Thiếu tham số {name}")
        return default
    try:
        return parse_iso_date(str(raw))
    except ValueError as exc:
        raise ValidationError(f"Ngày không hợp lệ: {name} (YYYY-MM-DD)") from exc


def int_field(data: dict, name: str, *, required: bool = True) -> Optional[int]:
    raw = data.get(name)
    if raw in (None, ""):
        if required:
            raise ValidationError(f"Thiếu tham số {name}")
        return None
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Giá trị không hợp lệ: {name}") from exc
