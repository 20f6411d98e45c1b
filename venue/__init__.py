import click
from flask import Flask
from flask_cors import CORS
from flask_sqlalchemy import SQLAlchemy
from config import config

db = SQLAlchemy()


def create_app(config_name='default'):
    """Application factory: creates and configures the Flask app."""
    from venue.errors import ConfigurationError

    app = Flask(__name__)
    app.config.from_object(config[config_name])

    if not app.config.get('SQLALCHEMY_DATABASE_URI'):
        raise ConfigurationError('DATABASE_URL is not set.')

    # ── Logging ───────────────────────────────────────────────────
    from venue.utils.logging import setup_logging
    setup_logging(app)

    # ── Extensions ────────────────────────────────────────────────
    db.init_app(app)
    CORS(app, resources={r"/api/*": {"origins": app.config['CORS_ORIGINS']}})

    from venue.utils.db import configure_engine
    with app.app_context():
        configure_engine(db.engine)

    # ── Models ────────────────────────────────────────────────────
    from venue.numbering import models  # noqa: F401, registers DocumentSequence

    # ── Blueprints ────────────────────────────────────────────────
    from venue.main import main as main_blueprint
    app.register_blueprint(main_blueprint)

    from venue.reservations import reservations as reservations_blueprint
    app.register_blueprint(reservations_blueprint, url_prefix='/api')

    # ── Error Handlers ────────────────────────────────────────────
    from venue.errors import register_error_handlers
    register_error_handlers(app)

    # ── CLI Commands ──────────────────────────────────────────────
    register_commands(app)

    # ── ProxyFix (HTTPS termination at the load balancer) ────────
    from werkzeug.middleware.proxy_fix import ProxyFix
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    return app


def register_commands(app):
    """Register custom Flask CLI commands."""

    @app.cli.command('init-db')
    def init_db():
        """Create all database tables."""
        db.create_all()
        click.echo('✅  Database tables created.')

    @app.cli.command('show-sequences')
    def show_sequences():
        """Show current invoice / receipt counters (diagnostic)."""
        from venue.numbering.service import sequence_status

        rows = sequence_status(db.session)
        if not rows:
            click.echo('No sequence rows found. The first reservation of a month opens its scope.')
            return
        click.echo(f'{"Scope":<18} {"Last Seq":<10} {"Next Number"}')
        click.echo('─' * 50)
        for scope, last_seq, next_number in rows:
            click.echo(f'{scope:<18} {last_seq:<10} {next_number}')
