"""
venue/main/routes.py
────────────────────
Service-level endpoints: health check and uploaded proof files.
"""
import shutil

from flask import current_app, jsonify, send_from_directory
from sqlalchemy import text

from venue import db
from venue.main import main
from venue.utils.time import utcnow, isoformat_utc


@main.route("/health")
def health():
    """Health check for load balancers and monitoring."""
    status = "ok"
    failures = []
    free_gb = None
    percent_free = None

    # 1. DB Check
    try:
        db.session.execute(text("SELECT 1"))
    except Exception as e:
        db.session.rollback()
        status = "error"
        failures.append(f"DB: {type(e).__name__}")
        current_app.logger.error(f"Health check failed (DB): {e}")

    # 2. Disk Check
    try:
        total, used, free = shutil.disk_usage("/")
        free_gb = free // (2**30)
        percent_free = round((free / total) * 100, 1)

        if percent_free < 10:
            msg = f"Low Disk Space: {free_gb}GB free ({percent_free:.1f}%)"
            failures.append(msg)
            current_app.logger.warning(msg)
            if status == "ok":
                status = "warning"
    except OSError as e:
        failures.append(f"Disk Check Error: {e}")
        if status == "ok":
            status = "warning"

    response = {
        "status": status,
        "timestamp": isoformat_utc(utcnow()),
        "details": {
            "db": "ok" if not any(f.startswith("DB") for f in failures) else "error",
            "disk_free_gb": free_gb,
            "disk_free_percent": percent_free,
        }
    }
    if failures:
        response["failures"] = failures

    return jsonify(response), 200 if status != "error" else 500


@main.route("/uploads/<path:filename>")
def uploaded_file(filename):
    """Serve a stored payment proof (``buktiUrl``)."""
    return send_from_directory(current_app.config['UPLOAD_FOLDER'], filename)
