"""Error handlers for a Flask request layer using the validator."""
from flask import jsonify

from uservalidator.core.errors import UserValidationError


def register_error_handlers(app):
    """Register the ``UserValidationError`` handler with the Flask app.

    Other errors are left to the application's own handlers.
    """

    @app.errorhandler(UserValidationError)
    def validation_error(error):
        """Handle rejected user requests."""
        if not error.is_client_error:
            app.logger.error(f"Validation could not run: {error.code} | {error.message}")
        return jsonify(error.to_dict()), error.status
