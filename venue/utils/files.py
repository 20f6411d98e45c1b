"""
venue/utils/files.py
────────────────────
Storage for uploaded payment proofs (``bukti``).

Files land in ``UPLOAD_FOLDER`` under a generated name and are served
back from ``/uploads/<name>``.
"""
import os
import random
import time

from flask import current_app
from werkzeug.utils import secure_filename

from venue.errors import ValidationError


def allowed_file(filename: str, allowed: set = None) -> bool:
    if allowed is None:
        allowed = current_app.config['ALLOWED_UPLOAD_EXTENSIONS']
    return "." in filename and filename.rsplit(".", 1)[1].lower() in allowed


def save_upload(file_storage, field_name: str = 'bukti') -> str:
    """
    Persist an uploaded file and return its public URL path.

    Name format: ``{field}-{epoch_ms}-{random}{ext}``.
    Returns '' when no file was sent.
    """
    if file_storage is None or not file_storage.filename:
        return ''

    original = secure_filename(file_storage.filename)
    if not allowed_file(original):
        raise ValidationError({field_name: 'File type not allowed.'})

    ext = os.path.splitext(original)[1].lower()
    unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    filename = f"{field_name}-{unique_suffix}{ext}"

    upload_dir = current_app.config['UPLOAD_FOLDER']
    os.makedirs(upload_dir, exist_ok=True)
    file_storage.save(os.path.join(upload_dir, filename))
    current_app.logger.info(f"Stored upload {filename}")
    return f"/uploads/{filename}"


def discard_upload(url: str) -> None:
    """Remove a file stored by save_upload (``/uploads/<name>``); '' is a no-op."""
    if not url:
        return
    filename = os.path.basename(url)
    path = os.path.join(current_app.config['UPLOAD_FOLDER'], filename)
    try:
        os.remove(path)
    except FileNotFoundError:
        return
    current_app.logger.info(f"Discarded upload {filename}")
