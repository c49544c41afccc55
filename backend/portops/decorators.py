# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import current_app, request, jsonify, g

from .permissions import role_has_permission
from .services import profile_service


OPERATOR_HEADER = "X-Operator-Id"


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user')


def require_operator(f):
    """
    Resolve the acting operator and stamp it on the request.

    Sign-in happens upstream; each request names its operator in the
    X-Operator-Id header. Sets g.current_user to the active Profile.

    Returns 401 if the header is missing or malformed, or the profile is
    unknown or deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        raw = request.headers.get(OPERATOR_HEADER, "").strip()

        if not raw:
            return jsonify({"error": "Operator identification required"}), 401

        if not raw.isdigit():
            return jsonify({"error": f"Invalid {OPERATOR_HEADER} header"}), 401

        profile = profile_service.get_active_profile(int(raw))

        if not profile:
            return jsonify({"error": "Unknown or inactive operator"}), 401

        g.current_user = profile

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require the current operator's role to grant a specific permission."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_operator was called first
            if not _is_authenticated():
                return jsonify({"error": "Operator identification required"}), 401

            user = g.current_user
            if not role_has_permission(user.role, permission_code):
                current_app.logger.info(
                    "Permission denied: operator %s (%s) lacks %s for %s %s",
                    user.id, user.role, permission_code, request.method, request.path,
                )
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": permission_code,
                    "message": f"Role {user.role} cannot perform {permission_code}",
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
