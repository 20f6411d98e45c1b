import os
from dotenv import load_dotenv
from sqlalchemy.engine import make_url

load_dotenv()

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


def build_database_uri(url, db_name=None):
    """
    Normalise a connection string from the environment.

    - Heroku/Render style ``postgres://`` is rewritten to ``postgresql://``.
    - When the URL carries no database component, ``db_name`` fills it in.
    Returns None when ``url`` is empty.
    """
    if not url:
        return None
    if url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    if db_name:
        parsed = make_url(url)
        if not parsed.database:
            url = parsed.set(database=db_name).render_as_string(hide_password=False)
    return url


class Config:
    """Base configuration shared across all environments."""
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production')
    DB_NAME = os.environ.get('DB_NAME', 'venueDB')

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_recycle": 300,
        "pool_pre_ping": True,
        "pool_size": 20,
        "max_overflow": 10,
        "pool_timeout": 30,
    }

    # ── Uploads (payment proofs) ──────────────────────────────────
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER', os.path.join(BASE_DIR, 'uploads'))
    ALLOWED_UPLOAD_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp', 'pdf'}
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024

    # ── Document numbering ────────────────────────────────────────
    # Only the first claim in a new month can conflict; later claims
    # serialise on the counter row and never retry.
    SEQUENCE_MAX_RETRIES = int(os.environ.get('SEQUENCE_MAX_RETRIES', 5))
    SEQUENCE_RETRY_BACKOFF = float(os.environ.get('SEQUENCE_RETRY_BACKOFF', 0.05))

    # ── Listing ───────────────────────────────────────────────────
    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 100

    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')

    LOG_TO_FILE = True
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_DIR = os.environ.get('LOG_DIR')


class DevelopmentConfig(Config):
    """Development environment configuration."""
    ENV_NAME = 'development'
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = (
        build_database_uri(os.environ.get('DATABASE_URL'), Config.DB_NAME)
        or f'sqlite:///{os.path.join(os.getcwd(), Config.DB_NAME + ".db")}'
    )
    SQLALCHEMY_ENGINE_OPTIONS = {}


class ProductionConfig(Config):
    """Production environment configuration."""
    ENV_NAME = 'production'
    DEBUG = False

    # No fallback: create_app() refuses to start without DATABASE_URL.
    SQLALCHEMY_DATABASE_URI = build_database_uri(os.environ.get('DATABASE_URL'), Config.DB_NAME)

    SECRET_KEY = os.environ.get('SECRET_KEY')


class TestingConfig(Config):
    """Testing environment configuration."""
    ENV_NAME = 'testing'
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}  # SQLite doesn't use the prod pool settings
    SEQUENCE_RETRY_BACKOFF = 0
    LOG_TO_FILE = False


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
