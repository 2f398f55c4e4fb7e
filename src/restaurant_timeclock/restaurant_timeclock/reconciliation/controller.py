from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_datetime
from ..common.web import current_employee_id, json_error, json_result, login_required, manager_required
from ..container import Container
from ..core.enums import ErrorType
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    engine = container.reconciliation_engine

    @app.route("/api/nudges", endpoint="api_my_nudges")
    @login_required
    def api_my_nudges():
        rows = engine.list_pending_nudges(current_employee_id())
        return jsonify({"success": True, "nudges": [n.to_dict() for n in rows]})

    @app.route("/api/nudges/<int:nudge_id>/respond", methods=["POST"], endpoint="api_respond_nudge")
    @login_required
    def api_respond_nudge(nudge_id: int):
        nudge = engine.get_nudge(nudge_id)
        if nudge is None or nudge.employee_id != current_employee_id():
            return json_error("Nudge not found", 404, ErrorType.NUDGE_NOT_FOUND)

        data = request.get_json(silent=True) or {}
        try:
            raw_time = data.get("clock_out_time")
            clock_out_time = parse_iso_datetime(raw_time) if raw_time else None
        except ValidationError as e:
            return json_error(str(e), 400, ErrorType.VALIDATION_ERROR)

        result = engine.respond(nudge_id=nudge_id, response=str(data.get("response") or ""), clock_out_time=clock_out_time)
        return json_result(result)

    @app.route("/api/manager/corrections", endpoint="api_manager_corrections")
    @manager_required
    def api_manager_corrections():
        rows = engine.list_manager_corrections()
        return jsonify({"success": True, "nudges": [n.to_dict() for n in rows]})

    @app.route("/api/manager/corrections/<int:nudge_id>", methods=["POST"], endpoint="api_apply_correction")
    @manager_required
    def api_apply_correction(nudge_id: int):
        data = request.get_json(silent=True) or {}
        try:
            clock_out_time = parse_iso_datetime(str(data.get("clock_out_time") or ""))
        except ValidationError as e:
            return json_error(str(e), 400, ErrorType.VALIDATION_ERROR)

        result = engine.resolve_with_manager(
            nudge_id=nudge_id,
            manager_id=current_employee_id(),
            clock_out_time=clock_out_time,
            notes=str(data.get("notes") or ""),
        )
        return json_result(result)

    @app.route("/api/manager/reconciliation/run", methods=["POST"], endpoint="api_run_reconciliation")
    @manager_required
    def api_run_reconciliation():
        nudges = container.reconciliation_worker.tick()
        return jsonify({"success": True, "nudges": [n.to_dict() for n in nudges]})
