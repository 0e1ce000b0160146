"""Capability predicates for trainer-owned resources.

Both predicates are pure apart from the audit log written on the denied path.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..core.enums import Role
from ..core.exceptions import AuthorizationError
from .context import RequestContext

logger = logging.getLogger(__name__)


def validate_trainer_class_access(ctx: RequestContext, class_id: int, class_owner_trainer_id: Optional[int]) -> bool:
    """Only the trainer who owns the class passes. Admin is not enough."""
    if ctx.role == Role.TRAINER and ctx.trainer_id is not None and ctx.trainer_id == class_owner_trainer_id:
        return True

    logger.warning(
        "Unauthorized class access attempt",
        extra={
            "user_id": ctx.user_id,
            "role": ctx.role.value,
            "class_id": class_id,
            "owner_trainer_id": class_owner_trainer_id,
        },
    )
    return False


def validate_trainer_salary_access(ctx: RequestContext, salary_owner_trainer_id: Optional[int]) -> bool:
    if ctx.role == Role.ADMIN:
        return True

    if ctx.role == Role.TRAINER and ctx.trainer_id is not None and ctx.trainer_id == salary_owner_trainer_id:
        return True

    logger.warning(
        "Unauthorized salary access attempt",
        extra={
            "user_id": ctx.user_id,
            "role": ctx.role.value,
            "owner_trainer_id": salary_owner_trainer_id,
        },
    )
    return False


def require_role(ctx: Optional[RequestContext], *roles: Role) -> RequestContext:
    if ctx is None:
        raise AuthorizationError("Vui lòng đăng nhập để tiếp tục")
    if not ctx.has_role(*roles):
        raise AuthorizationError("Bạn không có quyền thực hiện thao tác này")
    return ctx
