# Overview: Upload collaborator; stores attachments on local disk and resolves them for download.

from __future__ import annotations

import os
import uuid

from flask import current_app
from werkzeug.utils import secure_filename

from ..errors import NotFoundError, UpstreamFailure, ValidationError


def upload_root() -> str:
    """UPLOAD_FOLDER, resolved against the instance folder when relative."""
    folder = current_app.config["UPLOAD_FOLDER"]
    if not os.path.isabs(folder):
        folder = os.path.join(current_app.instance_path, folder)
    return folder


def _extension(filename: str) -> str:
    return filename.rsplit(".", 1)[1].lower() if "." in filename else ""


def save_upload(file_storage) -> dict:
    """
    Persist a werkzeug FileStorage and return {filename, stored_name}.

    Raises:
        ValidationError: no file, unsafe name, or extension not allowed
        UpstreamFailure: the disk write failed
    """
    if file_storage is None or not file_storage.filename:
        raise ValidationError("No file provided", details={"field": "file"})

    original = secure_filename(file_storage.filename)
    if not original:
        raise ValidationError("Invalid file name", details={"field": "file"})

    allowed = current_app.config["ALLOWED_UPLOAD_EXTENSIONS"]
    ext = _extension(original)
    if ext not in allowed:
        raise ValidationError(
            f"File type '.{ext}' is not allowed",
            details={"field": "file", "allowed": sorted(allowed)},
        )

    stored_name = f"{uuid.uuid4().hex}_{original}"
    root = upload_root()
    try:
        os.makedirs(root, exist_ok=True)
        file_storage.save(os.path.join(root, stored_name))
    except OSError as exc:
        current_app.logger.warning("Upload of %s failed: %s", original, exc)
        raise UpstreamFailure("File could not be stored") from exc

    current_app.logger.info("Stored upload %s", stored_name)
    return {"filename": original, "stored_name": stored_name}


def resolve_upload(name: str) -> str:
    """Absolute path of a stored upload, or NotFoundError."""
    safe = secure_filename(name)
    path = os.path.join(upload_root(), safe)
    if not safe or safe != name or not os.path.isfile(path):
        raise NotFoundError("File not found", details={"name": name})
    return path
