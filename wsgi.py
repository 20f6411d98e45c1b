import os
import sys

from venue import create_app, db
from venue.errors import ConfigurationError

config_name = os.environ.get('FLASK_ENV', 'production')

try:
    app = create_app(config_name)
except ConfigurationError as exc:
    # No partial startup: gunicorn sees the import fail and exits non-zero.
    print(f"❌ Startup aborted: {exc.message}", file=sys.stderr)
    raise SystemExit(1)

# Tables are created on startup (no shell access on the free hosting tier).
with app.app_context():
    db.create_all()

if __name__ == "__main__":
    app.run(port=int(os.environ.get('PORT', 3001)))
