from __future__ import annotations

import logging
from datetime import timedelta

from flask import Flask, request, session

from ..common.web import current_context, error_response, fail, login_required, ok, payload, roles_required
from ..core.enums import Role
from ..core.exceptions import DomainError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/login", methods=["POST"], endpoint="login")
    def login():
        data = payload()
        try:
            s_user = container.auth_service.authenticate(data.get("username", ""), data.get("password", ""))

            session.permanent = bool(data.get("remember_me"))
            app.permanent_session_lifetime = timedelta(days=7)

            session.update(s_user.session_payload())

            logger.info("User logged in", extra={"user_id": s_user.user_id, "role": s_user.role.value})
            return ok("Đăng nhập thành công!", s_user)
        except DomainError as e:
            logger.info("Login failed", extra={"username": data.get("username")})
            return error_response(e)
        except Exception as e:
            logger.exception("Login error")
            if bool(app.config.get("DEBUG", False)):
                return fail(f"Lỗi hệ thống khi đăng nhập: {e}", 500)
            return fail("Lỗi hệ thống khi đăng nhập", 500)

    @app.route("/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return ok("Đã đăng xuất hệ thống.")

    @app.route("/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        ctx = current_context()
        user = container.user_service.get(ctx.user_id)
        if not user:
            session.clear()
            return fail("Tài khoản không tồn tại", 401)
        return ok(
            data={
                "user_id": user.user_id,
                "full_name": user.full_name,
                "role": user.role,
                "phone": user.phone,
                "email": user.email,
                "joined_on": user.joined_on,
            }
        )

    @app.route("/members", methods=["POST"], endpoint="create_member")
    @roles_required(Role.ADMIN, Role.RECEPTION)
    def create_member():
        data = payload()
        try:
            user_id = container.user_service.create_member(
                full_name=data.get("full_name", ""),
                username=data.get("username", ""),
                password=data.get("password", ""),
                phone=data.get("phone"),
                email=data.get("email"),
            )
            return ok("Tạo hội viên thành công", {"user_id": user_id}, 201)
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Create member failed")
            return fail("Lỗi hệ thống khi tạo hội viên", 500)

    @app.route("/members", methods=["GET"], endpoint="list_members")
    @roles_required(Role.ADMIN, Role.RECEPTION)
    def list_members():
        include_locked = request.args.get("include_locked") in ("1", "true")
        members = container.user_service.list_members(include_locked=include_locked)
        return ok(
            data=[
                {"user_id": m.user_id, "full_name": m.full_name, "phone": m.phone, "is_active": m.is_active}
                for m in members
            ]
        )

    @app.route("/members/<int:user_id>/active", methods=["POST"], endpoint="set_member_active")
    @roles_required(Role.ADMIN)
    def set_member_active(user_id: int):
        data = payload()
        is_active = bool(data.get("is_active", True))
        try:
            container.user_service.set_member_active(user_id, is_active)
            return ok("Đã mở khóa tài khoản" if is_active else "Đã khóa tài khoản")
        except DomainError as e:
            return error_response(e)

    @app.route("/trainers", methods=["GET"], endpoint="list_trainers")
    @login_required
    def list_trainers():
        trainers = container.user_service.list_trainers()
        return ok(data=[{"user_id": t.user_id, "full_name": t.full_name} for t in trainers])
