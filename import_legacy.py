"""
import_legacy.py
────────────────
One-shot import of the legacy spreadsheet exports.

Reads, from the current directory:
    reservations.csv   addons.csv   payments.csv
(a missing file is skipped). Needs DATABASE_URL (and optionally DB_NAME)
in the environment or .env.

Run:
    python import_legacy.py
"""
import os
import sys

from sqlalchemy.exc import SQLAlchemyError

from venue import create_app, db
from venue.errors import ConfigurationError
from venue.legacy.importer import import_reservations, import_addons, import_payments
from venue.legacy.parsing import read_csv

FILES = [
    ('reservations.csv', import_reservations),
    ('addons.csv',       import_addons),
    ('payments.csv',     import_payments),
]


def main() -> int:
    try:
        app = create_app('production')
    except ConfigurationError as exc:
        print(f"❌ {exc.message} Set it in the environment or .env.")
        return 1

    with app.app_context():
        try:
            db.create_all()
            print(f"🔌 Connected: {db.engine.url.render_as_string(hide_password=True)}")
            print("🚀 Starting legacy import...")

            for filename, importer in FILES:
                path = os.path.join(os.getcwd(), filename)
                if not os.path.exists(path):
                    print(f"⚠️  {filename} not found, skipped.")
                    continue
                rows = read_csv(path)
                print(f"📊 {filename}: {len(rows)} rows read.")
                report = importer(rows)
                print(f"🔗 {report.summary()}")

        except SQLAlchemyError as exc:
            print(f"❌ Database error during import: {exc}")
            return 1
        except (OSError, UnicodeDecodeError) as exc:
            print(f"❌ Could not read CSV: {exc}")
            return 1

    print("🎉 Import complete.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
