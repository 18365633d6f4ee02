"""
Application error types and their JSON rendering.
"""

from __future__ import annotations

from flask import Flask, jsonify

from .logging_config import get_logger

logger = get_logger("errors")


class HabitPulseError(Exception):
    """Base exception for all HabitPulse errors"""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message or self.__class__.__doc__ or self.code

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class HabitNotFoundError(HabitPulseError):
    """Habit not found"""

    status_code = 404
    code = "habit_not_found"


class InvalidHabitDataError(HabitPulseError):
    """Raised when habit or completion data fails validation"""

    status_code = 400
    code = "invalid_data"

    def __init__(self, message: str = "", *, fields: dict[str, list[str]] | None = None) -> None:
        super().__init__(message or "Invalid request data.")
        self.fields = fields or {}

    def to_dict(self) -> dict:
        payload = super().to_dict()
        if self.fields:
            payload["fields"] = self.fields
        return payload


class UnauthorizedError(HabitPulseError):
    """Missing user identity"""

    status_code = 401
    code = "unauthorized"


def register_error_handlers(app: Flask) -> None:
    """Render HabitPulse errors as ``{"error", "message"}`` JSON bodies."""

    @app.errorhandler(HabitPulseError)
    def _handle_habitpulse_error(exc: HabitPulseError):
        if exc.status_code >= 500:
            logger.error("Unhandled application error: %s", exc.message, exc_info=exc)
        else:
            logger.info("Request rejected (%s): %s", exc.code, exc.message)
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(404)
    def _handle_not_found(_exc):
        return jsonify({"error": "not_found", "message": "Resource not found."}), 404

    @app.errorhandler(405)
    def _handle_method_not_allowed(_exc):
        return jsonify({"error": "method_not_allowed", "message": "Method not allowed."}), 405

    @app.errorhandler(500)
    def _handle_internal_error(exc):
        logger.error("Unhandled error: %s", getattr(exc, "original_exception", exc), exc_info=True)
        return jsonify({"error": "internal_error", "message": "Internal server error."}), 500


__all__ = [
    "HabitNotFoundError",
    "HabitPulseError",
    "InvalidHabitDataError",
    "UnauthorizedError",
    "register_error_handlers",
]
