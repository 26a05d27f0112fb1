# Overview: Flask routes for file uploads and serving stored attachments.

import os

from flask import Blueprint, request, send_from_directory, url_for

from ..decorators import json_endpoint, ok
from ..services import upload_service


uploads_bp = Blueprint("uploads", __name__)


@uploads_bp.post("/api/upload")
@json_endpoint("store upload")
def upload_file_route():
    """
    Multipart upload, field "file".

    Response: {"success": true, "url": "/uploads/<name>", "data": {filename, url}}
    """
    stored = upload_service.save_upload(request.files.get("file"))
    url = url_for("uploads.serve_upload_route", name=stored["stored_name"])
    return ok({"filename": stored["filename"], "url": url}, 201, url=url)


@uploads_bp.get("/uploads/<path:name>")
@json_endpoint("serve upload")
def serve_upload_route(name: str):
    path = upload_service.resolve_upload(name)
    return send_from_directory(os.path.dirname(path), os.path.basename(path))
