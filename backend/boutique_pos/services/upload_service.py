# Overview: Product image uploads written to local disk and served under /uploads.

from __future__ import annotations

import os
import uuid

from flask import current_app
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from ..validation import ValidationError

UPLOAD_URL_PREFIX = "/uploads"


def _extension(filename: str) -> str:
    name = secure_filename(filename or "")
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[1].lower()


def save_product_image(file: FileStorage) -> str:
    """
    Store an uploaded image under a random name and return its public URL.

    Only image extensions/mimetypes from ALLOWED_IMAGE_EXTENSIONS are accepted;
    the size cap is enforced by Flask via MAX_CONTENT_LENGTH.
    """
    allowed = current_app.config["ALLOWED_IMAGE_EXTENSIONS"]
    ext = _extension(file.filename)
    mimetype = (file.mimetype or "").lower()
    if ext not in allowed or not mimetype.startswith("image/") or mimetype.split("/", 1)[1] not in allowed:
        raise ValidationError("Only image files are allowed", field="image")

    folder = current_app.config["UPLOAD_FOLDER"]
    os.makedirs(folder, exist_ok=True)

    filename = f"{uuid.uuid4().hex}.{ext}"
    file.save(os.path.join(folder, filename))
    current_app.logger.info("Stored product image %s", filename)
    return f"{UPLOAD_URL_PREFIX}/{filename}"


def discard_uploaded_image(url: str | None) -> None:
    """Remove a stored image that no product references any more."""
    if not url or not url.startswith(f"{UPLOAD_URL_PREFIX}/"):
        return
    path = os.path.join(current_app.config["UPLOAD_FOLDER"], secure_filename(url.rsplit("/", 1)[1]))
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
