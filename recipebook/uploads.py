"""Multipart image uploads written to local disk before they reach the file store."""

from __future__ import annotations

import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Union

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from .errors import InvalidInput

ALLOWED_IMAGE_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp"}


@dataclass(frozen=True)
class UploadedImage:
    """An image saved to the local upload directory."""

    path: Path
    filename: str
    content_type: Optional[str] = None


def save_upload(image: FileStorage, upload_dir: Union[str, Path]) -> UploadedImage:
    """Write ``image`` to ``upload_dir`` as ``<epoch ms>-<token>-<original filename>``.

    The random token keeps names unique when the same filename arrives twice
    within one millisecond.
    """

    if not _allowed_image(image.filename or ""):
        raise InvalidInput("Unsupported image format. Allowed formats: PNG, JPG, JPEG, GIF, WEBP.")

    directory = Path(upload_dir)
    directory.mkdir(parents=True, exist_ok=True)

    filename = f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}-{secure_filename(image.filename)}"
    path = directory / filename
    image.save(path)

    return UploadedImage(path=path, filename=filename, content_type=image.mimetype)


@contextmanager
def open_upload(upload: UploadedImage) -> Iterator[BinaryIO]:
    """Open a saved upload for reading and remove it from disk afterwards."""

    try:
        with upload.path.open("rb") as stream:
            yield stream
    finally:
        discard_upload(upload)


def discard_upload(upload: UploadedImage) -> None:
    upload.path.unlink(missing_ok=True)


def _allowed_image(filename: str) -> bool:
    if not filename or "." not in filename:
        return False
    ext = filename.rsplit(".", 1)[1].lower()
    return ext in ALLOWED_IMAGE_EXTENSIONS


__all__ = ["ALLOWED_IMAGE_EXTENSIONS", "UploadedImage", "discard_upload", "open_upload", "save_upload"]
