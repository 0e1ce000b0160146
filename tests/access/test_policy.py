import logging

import pytest

from src.gym_management.gym_management.access.context import RequestContext
from src.gym_management.gym_management.access.policy import (
    require_role,
    validate_trainer_class_access,
    validate_trainer_salary_access,
)
from src.gym_management.gym_management.core.enums import Role
from src.gym_management.gym_management.core.exceptions import AuthorizationError

TRAINER = RequestContext.for_user(7, Role.TRAINER)
OTHER_TRAINER = RequestContext.for_user(8, Role.TRAINER)
ADMIN = RequestContext.for_user(1, Role.ADMIN)
MEMBER = RequestContext.for_user(20, Role.MEMBER)


def test_context_for_user_sets_identity():
    assert TRAINER.trainer_id == 7 and TRAINER.member_id is None
    assert MEMBER.member_id == 20 and MEMBER.trainer_id is None
    assert RequestContext.for_user(5, Role.GUEST).member_id == 5
    assert ADMIN.roles == frozenset({Role.ADMIN})


def test_context_from_session():
    ctx = RequestContext.from_session({"user_id": "7", "role": "TRAINER"})
    assert ctx == TRAINER
    assert RequestContext.from_session({}) is None
    assert RequestContext.from_session({"user_id": 7, "role": ""}) is None


def test_owner_trainer_can_access_class():
    assert validate_trainer_class_access(TRAINER, 3, 7) is True


@pytest.mark.parametrize("ctx,owner", [(OTHER_TRAINER, 7), (ADMIN, 7), (MEMBER, 7), (TRAINER, None)])
def test_class_access_denied(ctx, owner):
    assert validate_trainer_class_access(ctx, 3, owner) is False


def test_denied_class_access_is_logged(caplog):
    with caplog.at_level(logging.WARNING):
        validate_trainer_class_access(OTHER_TRAINER, 3, 7)

    record = caplog.records[-1]
    assert record.getMessage() == "Unauthorized class access attempt"
    assert record.user_id == 8
    assert record.class_id == 3


def test_salary_access():
    assert validate_trainer_salary_access(ADMIN, 7) is True
    assert validate_trainer_salary_access(TRAINER, 7) is True
    assert validate_trainer_salary_access(OTHER_TRAINER, 7) is False
    assert validate_trainer_salary_access(MEMBER, 7) is False


def test_require_role():
    assert require_role(ADMIN, Role.ADMIN, Role.RECEPTION) is ADMIN
    with pytest.raises(AuthorizationError):
        require_role(MEMBER, Role.ADMIN)
    with pytest.raises(AuthorizationError):
        require_role(None, Role.ADMIN)
