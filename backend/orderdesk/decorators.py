# Overview: Request decorators for back-office API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service


def require_auth(f):
    """
    Require a bearer session and establish tenant context.

    Sets on flask.g:
    - g.current_user: the authenticated User
    - g.tenant_id: tenant captured by the session (never taken from the request)
    - g.session_context: the full SessionContext

    Returns 401 when the header is missing, or the token is invalid, expired,
    revoked, or belongs to a deactivated user or tenant.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1].strip()
        context = session_service.validate_session(token)

        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.tenant_id = context.tenant_id
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function
