from __future__ import annotations

from flask import Flask, request

from ..common.web import current_context, fail, login_required, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/notifications", methods=["GET"], endpoint="list_notifications")
    @login_required
    def list_notifications():
        unread_only = request.args.get("unread") in {"1", "true"}
        items = container.notification_service.list_for_user(current_context().user_id, unread_only=unread_only)
        return ok(data=items)

    @app.route("/notifications/<int:notification_id>/read", methods=["POST"], endpoint="read_notification")
    @login_required
    def read_notification(notification_id: int):
        if not container.notification_service.mark_read(
            notification_id=notification_id, user_id=current_context().user_id
        ):
            return fail("Không tìm thấy thông báo", 404)
        return ok("Đã đánh dấu đã đọc")
