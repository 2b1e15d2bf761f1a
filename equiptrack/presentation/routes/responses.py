"""
Shared response helpers for the JSON blueprints
"""

from functools import wraps

from flask import jsonify, abort, request
from flask_login import current_user

from equiptrack.buisness.workflow.errors import WorkflowDomainError, WorkflowFatalError
from equiptrack.utils.logger import get_logger

logger = get_logger("equiptrack.routes.responses")

FATAL_ERROR_CODES = {WorkflowFatalError.error_code, 'INTERNAL_ERROR'}


def api_response(success, message='', data=None, error=None, suggestions=None, status=200, **extra):
    body = {
        'success': success,
        'message': message,
        'error': error,
        'data': data,
        'suggestions': list(suggestions or []),
    }
    body.update(extra)
    return jsonify(body), status


def domain_error_response(e: WorkflowDomainError):
    """Recoverable failures are 200 with success false; fatal ones are 500."""
    candidates = getattr(e, 'candidates', None)
    data = {'candidates': candidates} if candidates else None
    return api_response(False, str(e), data=data, error=e.error_code, status=status_for_error(e.error_code))


def status_for_error(error_code):
    return 500 if error_code in FATAL_ERROR_CODES else 200


def json_body():
    """Request JSON object, or abort 400."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        abort(400, description="Request body must be a JSON object")
    return payload


def roles_required(*roles):
    """Decorator to require one of ``roles`` (use after login_required)"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated or not current_user.has_role(*roles):
                logger.warning(
                    f"User {current_user.username if current_user.is_authenticated else 'anonymous'} "
                    f"denied access to {request.path}"
                )
                abort(403, description="Insufficient permissions")
            return f(*args, **kwargs)
        return decorated_function
    return decorator
