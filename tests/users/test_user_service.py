from datetime import date

import pytest
from werkzeug.security import check_password_hash, generate_password_hash

from src.gym_management.gym_management.core.enums import Role
from src.gym_management.gym_management.core.exceptions import AuthenticationError, NotFoundError, ValidationError
from src.gym_management.gym_management.users.service import AuthService, UserService


@pytest.fixture
def auth(world):
    return AuthService(world.users)


@pytest.fixture
def users(world):
    return UserService(world.users)


def test_authenticate_returns_session_user(world, auth):
    member = world.add_member(username="hoivien", password_hash=generate_password_hash("matkhau1"))

    s_user = auth.authenticate("  hoivien ", "matkhau1")

    assert s_user.user_id == member.user_id
    assert s_user.session_payload() == {"user_id": member.user_id, "name": "Nguyễn Văn A", "role": "MEMBER"}


@pytest.mark.parametrize(
    "username, password",
    [("hoivien", "sai-mat-khau"), ("khongco", "matkhau1"), ("", "")],
)
def test_authenticate_rejects_bad_credentials(world, auth, username, password):
    world.add_member(username="hoivien", password_hash=generate_password_hash("matkhau1"))

    with pytest.raises(AuthenticationError, match="Sai tài khoản hoặc mật khẩu"):
        auth.authenticate(username, password)


def test_authenticate_placeholder_hash_never_matches(world, auth):
    world.add_member(username="seed", password_hash="CHANGE_ME")

    with pytest.raises(AuthenticationError):
        auth.authenticate("seed", "CHANGE_ME")


def test_locked_account_cannot_log_in(world, auth):
    world.add_member(username="hoivien", password_hash=generate_password_hash("matkhau1"), is_active=False)

    with pytest.raises(AuthenticationError, match="khóa"):
        auth.authenticate("hoivien", "matkhau1")


def test_create_member_hashes_password_and_trims_fields(world, users):
    user_id = users.create_member(
        full_name=" Trần Thị B ",
        username="ttb",
        password="123456",
        phone=" 0901234567 ",
        email="  ",
        today=date(2024, 6, 1),
    )

    created = world.users.get_by_id(user_id)
    assert created.full_name == "Trần Thị B"
    assert created.role == Role.MEMBER
    assert created.joined_on == date(2024, 6, 1)
    assert created.phone == "0901234567"
    assert created.email is None
    assert check_password_hash(created.password_hash, "123456")


def test_create_member_validation(world, users):
    world.add_member(username="ttb")

    with pytest.raises(ValidationError, match="tối thiểu 6"):
        users.create_member(full_name="B", username="moi", password="123")
    with pytest.raises(ValidationError, match="Họ tên"):
        users.create_member(full_name="  ", username="moi", password="123456")
    with pytest.raises(ValidationError, match="đã tồn tại"):
        users.create_member(full_name="B", username="ttb", password="123456")


def test_lock_and_list_members(world, users):
    a = world.add_member("A")
    b = world.add_member("B")
    world.add_member("HLV", role=Role.TRAINER)

    users.set_member_active(a.user_id, False)

    assert [m.user_id for m in users.list_members()] == [b.user_id]
    assert {m.user_id for m in users.list_members(include_locked=True)} == {a.user_id, b.user_id}

    users.set_member_active(a.user_id, True)
    assert len(users.list_members()) == 2


def test_set_member_active_only_for_members(world, users):
    trainer = world.add_member("HLV", role=Role.TRAINER)

    with pytest.raises(NotFoundError):
        users.set_member_active(trainer.user_id, False)
    with pytest.raises(NotFoundError):
        users.set_member_active(999, False)


def test_list_trainers_skips_inactive(world, users):
    world.add_member("HLV 1", role=Role.TRAINER, hired_on=date(2020, 1, 1))
    world.add_member("HLV 2", role=Role.TRAINER, is_active=False)

    assert [t.full_name for t in users.list_trainers()] == ["HLV 1"]
