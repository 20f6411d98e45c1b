"""
venue/utils/db.py
─────────────────
Engine tweaks applied once per app.

SQLite ships with foreign keys switched off, so ON DELETE CASCADE on
addons / payments would silently do nothing. Turn them on for every new
connection. PostgreSQL needs nothing here.

Note on locking: SQLite has no SELECT … FOR UPDATE. Number allocation
still serialises there because its first statement is an UPDATE, which
takes the database write lock until the transaction ends.
"""
from sqlalchemy import event


def configure_engine(engine):
    """Install the SQLite connection hook on ``engine`` (no-op elsewhere)."""
    if engine.dialect.name != 'sqlite':
        return

    @event.listens_for(engine, 'connect')
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()
