"""
venue/utils/logging.py
──────────────────────
Log setup for the service: a rotating file plus stdout.

``app.logger`` is the ``venue`` logger, so module loggers such as
``venue.numbering.service`` or ``venue.legacy.importer`` propagate into
the handlers installed here.
"""
import os
import logging
from logging.handlers import RotatingFileHandler
from flask import has_request_context, request

FILE_FORMAT = '%(asctime)s | %(levelname)s | %(name)s | %(remote_addr)s | %(url)s | %(message)s'
STREAM_FORMAT = '%(asctime)s | %(levelname)s | %(name)s | %(message)s'


class RequestFormatter(logging.Formatter):
    """Adds ``url`` (method + URL) and ``remote_addr`` when inside a request."""

    def format(self, record):
        if has_request_context():
            record.url = f"{request.method} {request.url}"
            record.remote_addr = request.remote_addr
        else:
            record.url = '-'
            record.remote_addr = '-'
        return super().format(record)


def _file_handler(log_dir, level):
    os.makedirs(log_dir, exist_ok=True)
    handler = RotatingFileHandler(
        os.path.join(log_dir, 'app.log'),
        maxBytes=5 * 1024 * 1024,
        backupCount=5,
    )
    handler.setFormatter(RequestFormatter(FILE_FORMAT))
    handler.setLevel(level)
    return handler


def setup_logging(app):
    """
    Install handlers on ``app.logger``.

    - logs/app.log (LOG_DIR), 5 MB x 5 backups, when LOG_TO_FILE is set
    - stdout, always (Render / container logs)

    The ``venue`` logger outlives any one app object, so handlers from a
    previous create_app() call are replaced rather than stacked.
    """
    level = logging.getLevelName(str(app.config.get('LOG_LEVEL', 'INFO')).upper())
    if not isinstance(level, int):
        level = logging.INFO

    for handler in list(app.logger.handlers):
        if getattr(handler, '_venue_handler', False):
            app.logger.removeHandler(handler)
            handler.close()

    handlers = []
    if app.config.get('LOG_TO_FILE', True):
        log_dir = app.config.get('LOG_DIR') or os.path.join(app.root_path, '..', 'logs')
        try:
            handlers.append(_file_handler(log_dir, level))
        except OSError as exc:
            # read-only filesystem: stdout only
            app.logger.warning(f"File logging disabled: {exc}")

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(STREAM_FORMAT))
    stream_handler.setLevel(level)
    handlers.append(stream_handler)

    for handler in handlers:
        handler._venue_handler = True
        app.logger.addHandler(handler)

    app.logger.setLevel(level)
    app.logger.info("Venue reservations service startup (%s)", app.config.get('ENV_NAME', 'app'))
