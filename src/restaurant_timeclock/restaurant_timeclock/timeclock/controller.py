from __future__ import annotations

import io
import logging

import qrcode
from flask import Flask, jsonify, request, send_file
from PIL import Image, UnidentifiedImageError
from pyzbar.pyzbar import decode as pyzbar_decode

from ..common.datetime_utils import parse_iso_date
from ..common.web import current_employee_id, json_error, json_result, login_required, manager_required
from ..container import Container
from ..core.enums import ErrorType
from ..core.exceptions import ValidationError
from .model import ClockResult

logger = logging.getLogger(__name__)


def render_qr_png(token: str) -> io.BytesIO:
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=2,
    )
    qr.add_data(token)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    buf.seek(0)
    return buf


def decode_qr_token(stream) -> str:
    try:
        img = Image.open(stream).convert("RGB")
    except (UnidentifiedImageError, OSError):
        raise ValidationError("The uploaded file is not an image")
    decoded = pyzbar_decode(img)
    if not decoded:
        raise ValidationError("No QR code found in the image")
    return decoded[0].data.decode("utf-8").strip()


def register(app: Flask, container: Container) -> None:
    processor = container.clock_processor

    def _token_from_body() -> str:
        data = request.get_json(silent=True) or {}
        return str(data.get("qr_code") or "").strip()

    @app.route("/api/timeclock/clock-in", methods=["POST"], endpoint="api_clock_in")
    def api_clock_in():
        return json_result(processor.process_clock_in(current_employee_id(), _token_from_body()))

    @app.route("/api/timeclock/clock-out", methods=["POST"], endpoint="api_clock_out")
    def api_clock_out():
        return json_result(processor.process_clock_out(current_employee_id(), _token_from_body()))

    @app.route("/api/timeclock/clock-in/validate", methods=["POST"], endpoint="api_validate_clock_in")
    def api_validate_clock_in():
        return json_result(processor.validate_clock_in(current_employee_id(), _token_from_body()))

    @app.route("/api/timeclock/clock-out/validate", methods=["POST"], endpoint="api_validate_clock_out")
    def api_validate_clock_out():
        return json_result(processor.validate_clock_out(current_employee_id(), _token_from_body()))

    @app.route("/api/timeclock/scan", methods=["POST"], endpoint="api_clock_scan")
    def api_clock_scan():
        """Accept a photo of the posted QR code; the token decides clock-in vs clock-out."""
        if "image" not in request.files:
            return json_error("Missing image file", 400, ErrorType.INVALID_QR)
        try:
            token = decode_qr_token(request.files["image"].stream)
        except ValidationError as e:
            return json_error(str(e), 400, ErrorType.INVALID_QR)

        employee_id = current_employee_id()
        if token == container.clock_in_token:
            return json_result(processor.process_clock_in(employee_id, token))
        if token == container.clock_out_token:
            return json_result(processor.process_clock_out(employee_id, token))
        return json_result(ClockResult.fail(ErrorType.INVALID_QR, "Invalid QR code"))

    @app.route("/api/timeclock/status", endpoint="api_clock_status")
    @login_required
    def api_clock_status():
        employee_id = current_employee_id()
        status = processor.get_clock_status(employee_id)
        entry = processor.get_current_entry(employee_id)
        return jsonify(
            {
                "success": True,
                "status": status.to_dict(),
                "current_entry": entry.to_dict() if entry else None,
            }
        )

    @app.route("/api/timeclock/entries", endpoint="api_time_entries")
    @login_required
    def api_time_entries():
        try:
            start = parse_iso_date(request.args["start"]) if request.args.get("start") else None
            end = parse_iso_date(request.args["end"]) if request.args.get("end") else None
            entries = processor.get_time_entries(current_employee_id(), start=start, end=end)
        except ValueError:
            return json_error("Invalid date (YYYY-MM-DD)", 400, ErrorType.VALIDATION_ERROR)
        except ValidationError as e:
            return json_error(str(e), 400, ErrorType.VALIDATION_ERROR)
        return jsonify({"success": True, "entries": [e.to_dict() for e in entries]})

    @app.route("/admin/qr/<kind>.png", endpoint="admin_qr_image")
    @manager_required
    def admin_qr_image(kind: str):
        """Printable QR code for the restaurant-wide clock-in or clock-out token."""
        tokens = {"clock-in": container.clock_in_token, "clock-out": container.clock_out_token}
        token = tokens.get(kind)
        if token is None:
            return json_error("Unknown QR code", 404)
        return send_file(render_qr_png(token), mimetype="image/png")

    @app.route("/api/presence", endpoint="api_presence")
    def api_presence():
        return jsonify({"success": True, "presence": container.presence_gate.get_current_presence().to_dict()})

    @app.route("/api/presence/heartbeat", methods=["POST"], endpoint="api_presence_heartbeat")
    def api_presence_heartbeat():
        """Heartbeat from the on-site device; feeds the reconciliation presence poll."""
        reading = container.presence_gate.get_current_presence()
        recorded = container.heartbeat_gate.record(reading)
        return jsonify({"success": True, "recorded": recorded, "presence": reading.to_dict()})
