from __future__ import annotations

import io

import pytest
from werkzeug.datastructures import FileStorage

from recipebook import uploads
from recipebook.errors import InvalidInput
from recipebook.uploads import open_upload, save_upload


def make_image(content: bytes, filename: str = "soup.png") -> FileStorage:
    return FileStorage(stream=io.BytesIO(content), filename=filename, content_type="image/png")


def test_saved_name_keeps_timestamp_and_filename(tmp_path, monkeypatch):
    monkeypatch.setattr(uploads.time, "time", lambda: 1700000000.0)

    saved = save_upload(make_image(b"soup"), tmp_path)

    assert saved.filename.startswith("1700000000000-")
    assert saved.filename.endswith("-soup.png")
    assert saved.path.read_bytes() == b"soup"
    assert saved.content_type == "image/png"


def test_same_filename_in_same_millisecond_does_not_collide(tmp_path, monkeypatch):
    monkeypatch.setattr(uploads.time, "time", lambda: 1700000000.0)

    first = save_upload(make_image(b"AAAA"), tmp_path)
    second = save_upload(make_image(b"BBBB"), tmp_path)

    assert first.path != second.path
    with open_upload(first) as stream:
        assert stream.read() == b"AAAA"
    assert not first.path.exists()
    assert second.path.read_bytes() == b"BBBB"


def test_open_upload_removes_file_when_body_fails(tmp_path):
    saved = save_upload(make_image(b"soup"), tmp_path)

    with pytest.raises(InvalidInput):
        with open_upload(saved):
            raise InvalidInput("Please provide a recipe name.")

    assert not saved.path.exists()


def test_rejects_unsupported_extension(tmp_path):
    with pytest.raises(InvalidInput, match="Unsupported image format"):
        save_upload(make_image(b"text", "notes.txt"), tmp_path)

    assert list(tmp_path.iterdir()) == []
