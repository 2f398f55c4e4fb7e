from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import current_employee_id, json_error, login_required, manager_required
from ..container import Container
from ..core.enums import ErrorType, NotificationType


def register(app: Flask, container: Container) -> None:
    notifications = container.notification_service

    @app.route("/api/notifications", endpoint="api_my_notifications")
    @login_required
    def api_my_notifications():
        unread_only = request.args.get("unread") in {"1", "true", "yes"}
        rows = notifications.list_for_employee(current_employee_id(), unread_only=unread_only)
        return jsonify({"success": True, "notifications": [n.to_dict() for n in rows]})

    @app.route("/api/notifications/<int:notification_id>/read", methods=["POST"], endpoint="api_mark_notification_read")
    @login_required
    def api_mark_notification_read(notification_id: int):
        if not notifications.mark_read(notification_id=notification_id, employee_id=current_employee_id()):
            return json_error("Notification not found", 404)
        return jsonify({"success": True})

    @app.route("/api/manager/notifications", endpoint="api_manager_notifications")
    @manager_required
    def api_manager_notifications():
        raw_type = (request.args.get("type") or "").strip().upper()
        try:
            notification_type = NotificationType(raw_type) if raw_type else None
        except ValueError:
            return json_error("Unknown notification type", 400, ErrorType.VALIDATION_ERROR)
        rows = notifications.list_for_managers(notification_type)
        return jsonify({"success": True, "notifications": [n.to_dict() for n in rows]})
