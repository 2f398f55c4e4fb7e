from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import current_employee_id, json_error, json_result, login_required, manager_required
from ..container import Container
from ..core.enums import ApprovalType, ErrorType
from ..core.exceptions import ValidationError
from .model import AvailabilityChange


def register(app: Flask, container: Container) -> None:
    queue = container.approval_queue

    @app.route("/api/availability-changes", methods=["POST"], endpoint="api_submit_availability_change")
    @login_required
    def api_submit_availability_change():
        data = request.get_json(silent=True) or {}
        try:
            change = AvailabilityChange.from_dict(data.get("change") or {})
        except ValidationError as e:
            return json_error(str(e), 400, ErrorType.VALIDATION_ERROR)
        result = queue.submit_availability_change(
            employee_id=current_employee_id(),
            change=change,
            reason=str(data.get("reason") or ""),
        )
        return json_result(result)

    @app.route("/api/approvals/mine", endpoint="api_my_approvals")
    @login_required
    def api_my_approvals():
        rows = queue.list_for_employee(current_employee_id())
        return jsonify({"success": True, "requests": [r.to_dict() for r in rows]})

    @app.route("/api/approvals/pending", endpoint="api_pending_approvals")
    @manager_required
    def api_pending_approvals():
        raw_type = (request.args.get("type") or "").strip().upper()
        try:
            request_type = ApprovalType(raw_type) if raw_type else None
        except ValueError:
            return json_error("Unknown request type", 400, ErrorType.VALIDATION_ERROR)
        rows = queue.list_pending(request_type)
        return jsonify({"success": True, "requests": [r.to_dict() for r in rows]})

    def _resolve(request_id: int, approved: bool):
        data = request.get_json(silent=True) or {}
        result = queue.resolve(
            request_id=request_id,
            approved=approved,
            manager_id=current_employee_id(),
            notes=str(data.get("notes") or ""),
        )
        return json_result(result)

    @app.route("/api/approvals/<int:request_id>/approve", methods=["POST"], endpoint="api_approve_request")
    @manager_required
    def api_approve_request(request_id: int):
        return _resolve(request_id, True)

    @app.route("/api/approvals/<int:request_id>/deny", methods=["POST"], endpoint="api_deny_request")
    @manager_required
    def api_deny_request(request_id: int):
        return _resolve(request_id, False)
