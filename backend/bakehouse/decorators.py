# Overview: Request and role decorators for API routes.

from functools import wraps
from flask import request, g

from .errors import AuthenticationRequired, AuthorizationDenied, error_response
from .services import session_service


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'session_context')


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a live session.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.session_context: The full SessionContext object
    - g.shift: The shift selected for this session

    Returns 401 if the header is missing or the token is invalid, expired,
    revoked, or belongs to a deactivated user.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return error_response(AuthenticationRequired("Authentication required"))

        context = session_service.validate_session(token)
        if not context:
            return error_response(AuthenticationRequired("Invalid or expired token"))

        g.current_user = context.user
        g.session_context = context
        g.shift = context.shift

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles):
    """
    Require one of the given roles. Use after @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return error_response(AuthenticationRequired("Authentication required"))

            if g.current_user.role not in roles:
                return error_response(
                    AuthorizationDenied("Permission denied", details={"required_roles": list(roles)})
                )

            return f(*args, **kwargs)

        return decorated_function
    return decorator
