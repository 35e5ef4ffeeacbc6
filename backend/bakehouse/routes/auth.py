# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/bakehouse/routes/auth.py
"""
Authentication API routes

- Opaque bearer tokens (see session_service)
- The working shift is chosen at login and can be switched with PUT /shift;
  it travels with the session, not with the client
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..services.activity_service import log_login_activity
from ..decorators import require_auth, bearer_token
from ..validation import ValidationError


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Request body:
    {
        "email": "rep@bakery.test",   // required
        "password": "...",            // required
        "shift": "night"              // optional, defaults to the running shift
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        user = auth_service.authenticate(email, password)
        if not user:
            return jsonify({"error": "Invalid credentials"}), 401

        try:
            session, token = session_service.create_session(
                user_id=user.id,
                shift=data.get("shift"),
                user_agent=request.headers.get("User-Agent"),
                ip_address=request.remote_addr,
            )
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400

        log_login_activity(user, shift=session.selected_shift)

        return jsonify({
            "user": user.to_dict(),
            "token": token,
            "session": session.to_dict(),
            "shift": session.selected_shift,
            "message": "Login successful"
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """
    Revoke session token (logout).

    Expects Authorization header: Bearer <token>
    """
    try:
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authorization header required"}), 401

        if not session_service.revoke_session(token, reason="User logout"):
            return jsonify({"error": "Invalid or expired token"}), 401

        return jsonify({"message": "Logout successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({
        "user": g.current_user.to_dict(),
        "shift": g.shift,
        "session": g.session_context.session.to_dict(),
    }), 200


@auth_bp.put("/shift")
@require_auth
def set_shift_route():
    """Switch the shift for the current session. Body: {"shift": "morning" | "night"}."""
    data = request.get_json(silent=True) or {}
    try:
        session = session_service.set_selected_shift(g.session_context.session, data.get("shift"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update session shift")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"shift": session.selected_shift}), 200
