"""
venue/errors.py
───────────────
Error taxonomy and the JSON error handlers registered on the app.

Every failure that reaches the request boundary is rendered as

    {"message": "...", "category": "...", ["errors": {...}]}

so the frontend can branch on ``category`` without parsing messages.
Store internals (driver messages, SQL) are logged, never returned.
"""
from flask import jsonify, current_app
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException


class VenueError(Exception):
    """Base class for every error the service surfaces on purpose."""
    status_code = 500
    category = 'internal'

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__

    def to_dict(self) -> dict:
        return {'message': self.message, 'category': self.category}


class ConfigurationError(VenueError):
    """Required configuration is missing."""
    category = 'configuration'


class ValidationError(VenueError):
    """The request payload was rejected."""
    status_code = 400
    category = 'validation'

    def __init__(self, errors=None, message=None):
        self.errors = dict(errors or {})
        if message is None:
            message = '; '.join(f'{k}: {v}' for k, v in self.errors.items()) or 'Invalid request.'
        super().__init__(message)

    def to_dict(self) -> dict:
        payload = super().to_dict()
        if self.errors:
            payload['errors'] = self.errors
        return payload


class NotFoundError(VenueError):
    """The requested record does not exist."""
    status_code = 404
    category = 'not_found'


class TransientStoreError(VenueError):
    """The database is temporarily unavailable. Please try again."""
    status_code = 503
    category = 'transient'


class SequenceConflictError(TransientStoreError):
    """Could not allocate a document number. Please try again."""
    category = 'allocation_conflict'


def register_error_handlers(app):
    """Attach JSON error handlers for the taxonomy above."""

    @app.errorhandler(VenueError)
    def handle_venue_error(exc):
        from venue import db
        db.session.rollback()
        if exc.status_code >= 500:
            current_app.logger.error(f"{exc.category}: {exc.message}")
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_store_error(exc):
        from venue import db
        db.session.rollback()
        current_app.logger.error(f"Store error: {exc}")
        err = TransientStoreError()
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(exc):
        if exc.code >= 500:
            # unhandled exceptions arrive wrapped in InternalServerError (already logged by Flask)
            category = 'internal'
        elif exc.code == 404:
            category = 'not_found'
        else:
            category = 'http'
        return jsonify({'message': exc.description, 'category': category}), exc.code
