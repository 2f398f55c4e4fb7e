from __future__ import annotations

from functools import wraps
from typing import Optional

from flask import jsonify, session

from ..core.enums import ErrorType, Role

# Session keys written by the external login layer.
SESSION_EMPLOYEE_ID = "employee_id"
SESSION_ROLE = "role"

_STATUS_BY_ERROR = {
    ErrorType.NOT_LOGGED_IN: 401,
    ErrorType.REQUEST_NOT_FOUND: 404,
    ErrorType.NUDGE_NOT_FOUND: 404,
    ErrorType.PROCESSING_ERROR: 500,
    ErrorType.SUBMISSION_ERROR: 500,
    ErrorType.APPROVAL_ERROR: 500,
    ErrorType.RESPONSE_ERROR: 500,
}

MANAGER_ROLES = {Role.MANAGER.value, Role.ADMIN.value}


def current_employee_id() -> Optional[int]:
    raw = session.get(SESSION_EMPLOYEE_ID)
    return int(raw) if raw is not None else None


def status_for(error_type: Optional[ErrorType]) -> int:
    if error_type is None:
        return 200
    return _STATUS_BY_ERROR.get(error_type, 400)


def json_result(result):
    """Serialize a ClockResult / ActionResult with the matching HTTP status."""
    if result.success:
        return jsonify(result.to_dict()), 200
    return jsonify(result.to_dict()), status_for(result.error_type)


def json_error(message: str, status: int, error_type: Optional[ErrorType] = None):
    body = {"success": False, "message": message, "error": message}
    if error_type is not None:
        body["error_type"] = error_type.value
    return jsonify(body), status


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if SESSION_EMPLOYEE_ID not in session:
            return json_error("Please log in to continue", 401, ErrorType.NOT_LOGGED_IN)
        return view(*args, **kwargs)

    return wrapper


def manager_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if SESSION_EMPLOYEE_ID not in session:
            return json_error("Please log in to continue", 401, ErrorType.NOT_LOGGED_IN)
        if session.get(SESSION_ROLE) not in MANAGER_ROLES:
            return json_error("Manager access required", 403)
        return view(*args, **kwargs)

    return wrapper
