# Overview: Error taxonomy shared by services and routes.

from __future__ import annotations

from flask import current_app, jsonify

from .extensions import db


class BakehouseError(Exception):
    """Base class for errors that map onto a JSON error envelope."""
    status_code = 500

    def __init__(self, message: str, details: str | dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class AuthenticationRequired(BakehouseError):
    status_code = 401


class AuthorizationDenied(BakehouseError):
    status_code = 403


class NotFoundError(BakehouseError):
    status_code = 404


class ConflictError(BakehouseError):
    """409-level business rule conflict."""
    status_code = 409


class UpstreamDataStoreError(BakehouseError):
    """Wraps a database failure; details carry the driver message."""
    status_code = 500


class UnknownError(BakehouseError):
    status_code = 500


def error_response(exc: BakehouseError):
    return jsonify(exc.to_dict()), exc.status_code


def data_store_failure(exc: Exception, action: str):
    """Roll back, log, and answer a database failure as UpstreamDataStoreError."""
    db.session.rollback()
    current_app.logger.exception("%s: database error", action)
    return error_response(UpstreamDataStoreError(action, details=str(exc)))


def internal_error(action: str):
    """Log the active exception and answer with the generic 500 envelope."""
    current_app.logger.exception(action)
    return error_response(UnknownError("Internal server error"))
