"""
restructure_embedded.py
───────────────────────
One-shot move of the old embedded layout (add-ons and payments stored
inside each reservation document) into the linked tables.

Reads reservations.json (JSON array or JSON lines, as written by
mongoexport) from the current directory. Needs DATABASE_URL (and
optionally DB_NAME) in the environment or .env. Safe to run twice.

Run:
    python restructure_embedded.py
"""
import json
import os
import sys

from sqlalchemy.exc import SQLAlchemyError

from venue import create_app, db
from venue.errors import ConfigurationError
from venue.legacy.restructure import load_documents, restructure_documents

EXPORT_FILE = 'reservations.json'


def main() -> int:
    path = os.path.join(os.getcwd(), EXPORT_FILE)
    if not os.path.exists(path):
        print(f"❌ {EXPORT_FILE} not found in {os.getcwd()}.")
        return 1

    try:
        app = create_app('production')
    except ConfigurationError as exc:
        print(f"❌ {exc.message} Set it in the environment or .env.")
        return 1

    with app.app_context():
        try:
            db.create_all()
            documents = load_documents(path)
            print(f"📊 {len(documents)} reservation documents read.")
            for report in restructure_documents(documents):
                print(f"🔗 {report.summary()}")
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            print(f"❌ Could not parse {EXPORT_FILE}: {exc}")
            return 1
        except SQLAlchemyError as exc:
            print(f"❌ Database error during restructure: {exc}")
            return 1

    print("🎉 Restructure complete.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
